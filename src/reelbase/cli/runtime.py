"""Explicitly owned storage client and services shared by CLI commands."""

from __future__ import annotations

from typing import Optional

from reelbase.config.settings import Settings, get_settings
from reelbase.db.backend import StorageBackend
from reelbase.db.connection import DatabasePool
from reelbase.db.postgres import PostgresBackend
from reelbase.services.accounts import AccountService
from reelbase.services.catalog import CatalogService


class Runtime:
    """Builds the backend on first use and hands the same instance to every service."""

    def __init__(self, *, settings: Optional[Settings] = None, backend: Optional[StorageBackend] = None) -> None:
        self._settings = settings
        self._backend = backend
        self._pool: Optional[DatabasePool] = None
        self._accounts: Optional[AccountService] = None
        self._catalog: Optional[CatalogService] = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def backend(self) -> StorageBackend:
        if self._backend is None:
            self._pool = DatabasePool.from_settings(self.settings)
            self._backend = PostgresBackend(self._pool.connection, fetch_size=self.settings.fetch_size)
        return self._backend

    def accounts(self) -> AccountService:
        if self._accounts is None:
            self._accounts = AccountService(self.backend, settings=self.settings)
        return self._accounts

    def catalog(self) -> CatalogService:
        if self._catalog is None:
            self._catalog = CatalogService(self.backend)
        return self._catalog

    def close(self) -> None:
        """Release pooled database connections, if any were opened."""

        if self._pool is not None:
            self._pool.close()
            self._pool = None


__all__ = ["Runtime"]
