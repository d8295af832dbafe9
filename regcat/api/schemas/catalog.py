"""Catalog schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CatalogOut(BaseModel):
    repositories: list[str] = Field(default_factory=list)
