"""Pydantic schemas returned by the registry API."""

from __future__ import annotations

from regcat.api.schemas.catalog import CatalogOut

__all__ = ["CatalogOut"]
