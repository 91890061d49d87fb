"""Allow `python -m reelbase`."""

from reelbase.cli.main import main

main()
