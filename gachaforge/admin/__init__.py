"""Admin tooling."""

from .service import CatalogAdminService

__all__ = ["CatalogAdminService"]
