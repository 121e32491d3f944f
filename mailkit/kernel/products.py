"""
Mailkit Kernel: Product resolution

Product-bearing sections store only product ids. Display data is resolved
through a ProductResolver at render time so price and stock changes show up
on every render. A resolver reports missing ids by leaving them out of its
result; it must not raise for them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

from mailkit.kernel.types import Product

logger = logging.getLogger(__name__)


class ProductResolver(Protocol):
    def resolve(self, ids: list[int]) -> dict[int, Product]:
        """Return display data for the ids that exist. Missing ids are absent."""
        ...


class StaticProductResolver:
    """Resolver over a fixed product list. Used for previews and tests."""

    def __init__(self, products: Iterable[Product] = ()):
        self.products: dict[int, Product] = {p.id: p for p in products}

    def resolve(self, ids: list[int]) -> dict[int, Product]:
        return {pid: self.products[pid] for pid in ids if pid in self.products}


class NullProductResolver:
    """Resolves nothing. Product sections render their empty state."""

    def resolve(self, ids: list[int]) -> dict[int, Product]:
        return {}


def resolve_products(resolver: ProductResolver | None, ids: list[int]) -> list[Product]:
    """
    Resolve ids in order, skipping any the resolver does not know.
    A resolver failure is logged and treated as "nothing found".
    """
    if not ids or resolver is None:
        return []
    try:
        found = resolver.resolve(list(ids))
    except Exception as e:
        logger.warning("products: resolver failed for %s: %s", ids, e)
        return []
    return [found[pid] for pid in ids if pid in found]


SAMPLE_PRODUCTS = [
    Product(
        id=1,
        name="Classic Linen Shirt",
        image_url="https://placehold.co/260x260?text=Shirt",
        price_display="£39.00",
        url="https://example.com/product/linen-shirt",
    ),
    Product(
        id=2,
        name="Canvas Weekender Bag",
        image_url="https://placehold.co/260x260?text=Bag",
        price_display="£64.00",
        url="https://example.com/product/weekender",
    ),
    Product(
        id=3,
        name="Merino Crew Socks",
        image_url="https://placehold.co/260x260?text=Socks",
        price_display="£12.50",
        url="https://example.com/product/socks",
    ),
]
