"""Service layer for reelbase: account and catalog coordinators."""

from reelbase.services.accounts import AccountService, CredentialsIntegrityError, RegistrationState
from reelbase.services.catalog import CatalogService

__all__ = ["AccountService", "CatalogService", "CredentialsIntegrityError", "RegistrationState"]
