"""
Mailkit Kernel: Preset / Variant Library

Named settings overlays per section type, grouped by palette category.
Pure data: applying a preset is the merge engine's seed path, and nothing
here ever mutates the library (lookups hand out deep copies).
"""

from __future__ import annotations

import copy
from typing import Any


class UnknownVariant(KeyError):
    """Variant id is not in the preset library."""

    def __init__(self, variant_id: str):
        super().__init__(variant_id)
        self.variant_id = variant_id

    def __str__(self) -> str:
        return f"Unknown preset variant: {self.variant_id!r}"


def _v(vid: str, label: str, section_type: str, indicator: str, description: str, **settings: Any) -> dict[str, Any]:
    return {
        "id": vid,
        "label": label,
        "description": description,
        "type": section_type,
        "indicator_color": indicator,
        "settings": settings,
    }


PRESET_CATEGORIES: list[dict[str, Any]] = [
    {
        "category": "header",
        "label": "Header",
        "icon": "web_asset",
        "variants": [
            _v("header-light", "Light", "header", "#ffffff", "White header with dark text"),
            _v(
                "header-dark",
                "Dark",
                "header",
                "#1a1a2e",
                "Dark navy header",
                background_color="#1a1a2e",
                text_color="#ffffff",
            ),
            _v(
                "header-nav",
                "With Navigation",
                "header",
                "#f5f5f5",
                "Logo with a row of shop links",
                show_nav=True,
                nav_links=[
                    {"label": "New In", "url": "{{store_url}}"},
                    {"label": "Sale", "url": "{{store_url}}"},
                ],
            ),
            _v(
                "header-forest",
                "Forest",
                "header",
                "#1a3d2b",
                "Deep green header",
                background_color="#1a3d2b",
                text_color="#ffffff",
            ),
        ],
    },
    {
        "category": "hero",
        "label": "Hero",
        "icon": "image",
        "variants": [
            _v("hero-bold", "Bold", "hero", "#1a1a2e", "Dark background, red button"),
            _v(
                "hero-clean",
                "Clean",
                "hero",
                "#ffffff",
                "White background with dark text",
                background_color="#ffffff",
                headline_color="#111111",
                subtext_color="#555555",
            ),
            _v(
                "hero-dark",
                "Midnight",
                "hero",
                "#000000",
                "Black background, white button",
                background_color="#000000",
                cta_bg_color="#ffffff",
                cta_text_color="#000000",
            ),
            _v(
                "hero-forest",
                "Forest Green",
                "hero",
                "#1a3d2b",
                "Deep green with a white button",
                background_color="#1a3d2b",
                subtext_color="#a8d5b5",
                cta_bg_color="#ffffff",
                cta_text_color="#1a3d2b",
                padding_top=56,
                padding_bottom=56,
            ),
            _v(
                "hero-luxury",
                "Luxury",
                "hero",
                "#c9a84c",
                "Charcoal with gold accents",
                background_color="#1c1c1c",
                headline_color="#c9a84c",
                subtext_color="#e8e0cc",
                cta_bg_color="#c9a84c",
                cta_text_color="#1c1c1c",
                headline_size=40,
            ),
        ],
    },
    {
        "category": "heading",
        "label": "Heading",
        "icon": "title",
        "variants": [
            _v("heading-centered", "Centered", "heading", "#e63529", "Centered with accent line"),
            _v(
                "heading-left",
                "Left Aligned",
                "heading",
                "#111111",
                "Left aligned, no accent",
                alignment="left",
                show_accent=False,
            ),
            _v(
                "heading-dark",
                "Dark Band",
                "heading",
                "#1a1a2e",
                "White heading on a dark band",
                background_color="#1a1a2e",
                text_color="#ffffff",
                accent_color="#c9a84c",
            ),
        ],
    },
    {
        "category": "text",
        "label": "Text",
        "icon": "notes",
        "variants": [
            _v("text-simple", "Simple", "text", "#ffffff", "Plain paragraph"),
            _v(
                "text-centered",
                "Centered",
                "text",
                "#f5f5f5",
                "Centered on a light grey band",
                alignment="center",
                background_color="#f5f5f5",
            ),
            _v(
                "text-large",
                "Large Print",
                "text",
                "#333333",
                "Bigger type for short copy",
                font_size=18,
                padding=40,
            ),
        ],
    },
    {
        "category": "image",
        "label": "Image",
        "icon": "photo",
        "variants": [
            _v("image-full", "Full Width", "image", "#dddddd", "Edge to edge image"),
            _v("image-centered", "Centered", "image", "#eeeeee", "Inset image at 80%", width=80),
        ],
    },
    {
        "category": "list",
        "label": "List",
        "icon": "format_list_bulleted",
        "variants": [
            _v("list-bullets", "Bullets", "list", "#e63529", "Bulleted list"),
            _v("list-checks", "Checks", "list", "#2e7d32", "Tick marks", list_style="checks", accent_color="#2e7d32"),
            _v("list-numbered", "Numbered", "list", "#333333", "Numbered steps", list_style="numbers"),
        ],
    },
    {
        "category": "banner",
        "label": "Banner",
        "icon": "campaign",
        "variants": [
            _v("banner-red", "Red Alert", "banner", "#e63529", "Bright red promo strip"),
            _v(
                "banner-dark",
                "Dark",
                "banner",
                "#1a1a2e",
                "Dark strip with white text",
                background_color="#1a1a2e",
            ),
            _v(
                "banner-gold",
                "Gold",
                "banner",
                "#c9a84c",
                "Gold strip with dark text",
                background_color="#c9a84c",
                text_color="#1c1c1c",
            ),
        ],
    },
    {
        "category": "products",
        "label": "Products",
        "icon": "shopping_cart",
        "variants": [
            _v("products-stack", "Stacked", "products", "#ffffff", "One product per row"),
            _v("products-grid", "Grid", "products", "#f5f5f5", "Two columns", columns="2"),
            _v("products-three", "Three Column", "products", "#eeeeee", "Compact three columns", columns="3"),
            _v(
                "products-dark",
                "Dark",
                "products",
                "#1a1a2e",
                "Two columns on dark",
                columns="2",
                background_color="#1a1a2e",
                text_color="#ffffff",
                button_color="#c9a84c",
            ),
        ],
    },
    {
        "category": "coupon",
        "label": "Coupon",
        "icon": "local_offer",
        "variants": [
            _v("coupon-warm", "Warm", "coupon", "#fff8e6", "Cream card with red accents"),
            _v(
                "coupon-dark",
                "Dark",
                "coupon",
                "#1a1a2e",
                "Dark card with gold code",
                background_color="#1a1a2e",
                accent_color="#c9a84c",
                text_color="#ffffff",
            ),
            _v(
                "coupon-green",
                "Green",
                "coupon",
                "#1a3d2b",
                "Mint card with green code",
                background_color="#eef7f1",
                accent_color="#1a3d2b",
            ),
        ],
    },
    {
        "category": "cta",
        "label": "Call to Action",
        "icon": "ads_click",
        "variants": [
            _v("cta-centered", "Centered", "cta", "#f5f5f5", "Light band, red button"),
            _v(
                "cta-dark",
                "Dark",
                "cta",
                "#1a1a2e",
                "Dark band, white text",
                background_color="#1a1a2e",
                text_color="#ffffff",
            ),
            _v(
                "cta-accent",
                "Accent",
                "cta",
                "#e63529",
                "Red band, white button",
                background_color="#e63529",
                text_color="#ffffff",
                button_bg_color="#ffffff",
                button_text_color="#e63529",
            ),
            _v(
                "cta-green",
                "Green",
                "cta",
                "#1a3d2b",
                "Deep green band",
                background_color="#1a3d2b",
                text_color="#ffffff",
                button_bg_color="#a8d5b5",
                button_text_color="#1a3d2b",
            ),
        ],
    },
    {
        "category": "divider",
        "label": "Divider / Spacer",
        "icon": "horizontal_rule",
        "variants": [
            _v("divider-line", "Line", "divider", "#e5e5e5", "Thin grey rule"),
            _v("divider-accent", "Accent Line", "divider", "#e63529", "Red rule", color="#e63529", thickness=2),
            _v("divider-dashed", "Dashed", "divider", "#cccccc", "Dashed rule", line_style="dashed", color="#cccccc"),
            _v("spacer-sm", "Small Space", "spacer", "#ffffff", "24px gap", height=24),
            _v("spacer-lg", "Large Space", "spacer", "#ffffff", "56px gap", height=56),
        ],
    },
    {
        "category": "footer",
        "label": "Footer",
        "icon": "bottom_navigation",
        "variants": [
            _v("footer-minimal", "Minimal", "footer", "#f5f5f5", "Grey footer with unsubscribe link"),
            _v(
                "footer-dark",
                "Dark",
                "footer",
                "#1a1a2e",
                "Dark footer",
                background_color="#1a1a2e",
                text_color="#aaaaaa",
            ),
        ],
    },
]

_BY_ID: dict[str, dict[str, Any]] = {v["id"]: v for c in PRESET_CATEGORIES for v in c["variants"]}


def list_presets_by_category() -> list[dict[str, Any]]:
    """Ordered preset groups for palette display. Returns copies."""
    return copy.deepcopy(PRESET_CATEGORIES)


def get_variant(variant_id: str) -> dict[str, Any]:
    """Full variant record (id, label, type, settings, ...). Raises UnknownVariant."""
    try:
        return copy.deepcopy(_BY_ID[variant_id])
    except KeyError:
        raise UnknownVariant(variant_id) from None


def resolve_variant(variant_id: str) -> dict[str, Any]:
    """The settings overlay of a variant. Raises UnknownVariant."""
    return get_variant(variant_id)["settings"]
