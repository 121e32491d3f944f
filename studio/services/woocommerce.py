"""
WooCommerce product resolver.

The renderer resolves products synchronously, so product data is fetched
ahead of rendering: `prefetch(ids)` loads what is missing from the store's
REST API into a per-resolver cache, then `resolve(ids)` answers from it.
Ids the store does not return (deleted, unpublished) stay missing and the
renderer skips them.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from mailkit.kernel.fields import FieldValueError, parse_product_ids
from mailkit.kernel.model import TemplateModel
from mailkit.kernel.types import Product
from studio.config import settings

logger = logging.getLogger(__name__)

PRODUCTS_PATH = "/wp-json/wc/v3/products"


class WooCommerceResolver:
    """ProductResolver backed by the WooCommerce REST API."""

    def __init__(
        self,
        base_url: str,
        consumer_key: str,
        consumer_secret: str,
        currency_symbol: str = "£",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth = (consumer_key, consumer_secret)
        self.currency_symbol = currency_symbol
        self.timeout = timeout
        self._transport = transport
        self._cache: dict[int, Product] = {}

    async def prefetch(self, ids: list[int]) -> None:
        """Load the given ids into the cache. Lookup failures are logged, not raised."""
        missing = [pid for pid in ids if pid not in self._cache]
        if not missing:
            return
        params = {"include": ",".join(str(pid) for pid in missing), "per_page": len(missing), "status": "publish"}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, auth=self.auth, timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(PRODUCTS_PATH, params=params)
                response.raise_for_status()
                items = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("woocommerce: product lookup failed for %s: %s", missing, e)
            return

        for item in items if isinstance(items, list) else []:
            product = self._to_product(item)
            if product is not None:
                self._cache[product.id] = product

    def resolve(self, ids: list[int]) -> dict[int, Product]:
        return {pid: self._cache[pid] for pid in ids if pid in self._cache}

    def _to_product(self, item: dict[str, Any]) -> Product | None:
        try:
            pid = int(item["id"])
        except (KeyError, TypeError, ValueError):
            return None
        images = item.get("images") or []
        image_url = images[0].get("src", "") if images and isinstance(images[0], dict) else ""
        return Product(
            id=pid,
            name=str(item.get("name", "")),
            image_url=image_url,
            price_display=self.format_price(item.get("price")),
            url=str(item.get("permalink", "")),
        )

    def format_price(self, price: Any) -> str:
        if price in (None, ""):
            return ""
        try:
            return f"{self.currency_symbol}{float(price):.2f}"
        except (TypeError, ValueError):
            return str(price)


def woocommerce_configured() -> bool:
    return bool(settings.WC_BASE_URL and settings.WC_CONSUMER_KEY and settings.WC_CONSUMER_SECRET)


def resolver_from_settings() -> WooCommerceResolver:
    return WooCommerceResolver(
        base_url=settings.WC_BASE_URL,
        consumer_key=settings.WC_CONSUMER_KEY,
        consumer_secret=settings.WC_CONSUMER_SECRET,
        currency_symbol=settings.CURRENCY_SYMBOL,
        timeout=settings.WC_TIMEOUT_SECONDS,
    )


def referenced_product_ids(model: TemplateModel) -> list[int]:
    """Every product id referenced by the template, in order, without duplicates."""
    ids: list[int] = []
    for section in model.sections:
        if "product_ids" not in section.settings:
            continue
        try:
            section_ids = parse_product_ids(section.settings["product_ids"])
        except FieldValueError:
            # The renderer turns this section into a placeholder
            continue
        for pid in section_ids:
            if pid not in ids:
                ids.append(pid)
    return ids
