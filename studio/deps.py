"""
FastAPI dependencies for the composer routes.

Tests override these with app.dependency_overrides.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from mailkit.kernel.assembly import TemplateStorage
from mailkit.kernel.generation import SectionGenerator
from mailkit.kernel.postgres_storage import PostgresStorage
from mailkit.kernel.products import SAMPLE_PRODUCTS, ProductResolver, StaticProductResolver
from studio import db
from studio.services.section_ai import SectionCopyGenerator
from studio.services.woocommerce import resolver_from_settings, woocommerce_configured


def get_storage() -> TemplateStorage:
    if db.pool is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Template storage unavailable.")
    return PostgresStorage(db.pool)


def get_resolver() -> ProductResolver:
    """A fresh resolver per request, so product data is never stale across renders."""
    if woocommerce_configured():
        return resolver_from_settings()
    return StaticProductResolver(SAMPLE_PRODUCTS)


def get_generator() -> SectionGenerator:
    return SectionCopyGenerator()


def get_layout_generator() -> SectionCopyGenerator:
    return SectionCopyGenerator()
