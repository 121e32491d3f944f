"""
Mailkit Kernel: Section Type Registry

Static catalog of section types. Read-only at runtime: the catalog is
configuration data, not user data.

Button, URL and link-list fields are never AI-eligible. Eligibility is
declared per field, never derived from the key name.
"""

from __future__ import annotations

from typing import Any

from mailkit.kernel.types import FieldKind, FieldSchema, SectionType

K = FieldKind

# Palette grouping, in display order
CATEGORIES: list[tuple[str, str]] = [
    ("structure", "Structure"),
    ("content", "Content"),
    ("commerce", "Commerce"),
]

ALIGNMENTS = ("left", "center", "right")


class UnknownSectionType(KeyError):
    """Section type is not in the registry."""

    def __init__(self, section_type: str):
        super().__init__(section_type)
        self.section_type = section_type

    def __str__(self) -> str:
        return f"Unknown section type: {self.section_type!r}"


def _f(key: str, label: str, kind: FieldKind, default: Any = "", **kw: Any) -> FieldSchema:
    return FieldSchema(key=key, label=label, kind=kind, default=default, **kw)


def _ai(key: str, label: str, kind: FieldKind, default: Any = "", **kw: Any) -> FieldSchema:
    return FieldSchema(key=key, label=label, kind=kind, default=default, ai_eligible=True, **kw)


def _range(key: str, label: str, default: int, lo: int, hi: int, step: int = 1, **kw: Any) -> FieldSchema:
    return FieldSchema(key=key, label=label, kind=K.RANGE, default=default, min=lo, max=hi, step=step, **kw)


def _align(default: str) -> FieldSchema:
    return FieldSchema(key="alignment", label="Alignment", kind=K.SELECT, default=default, options=ALIGNMENTS)


SECTION_TYPES: tuple[SectionType, ...] = (
    SectionType(
        type="header",
        label="Header",
        icon="web_asset",
        category="structure",
        fields=(
            _f("logo_url", "Logo", K.IMAGE),
            _range("logo_width", "Logo width", 180, 60, 400, 10),
            _f("logo_height", "Logo height", K.NUMBER, 60),
            _f("store_name", "Store name", K.TEXT),
            _f("background_color", "Background", K.COLOR, "#ffffff"),
            _f("text_color", "Text colour", K.COLOR, "#333333"),
            _f("show_nav", "Show navigation", K.TOGGLE, False),
            _f("nav_links", "Navigation links", K.LINKS, []),
        ),
    ),
    SectionType(
        type="heading",
        label="Heading",
        icon="title",
        category="structure",
        fields=(
            _ai("text", "Heading", K.TEXT, "Section Heading", required=True),
            _ai("subtext", "Subheading", K.TEXT),
            _range("font_size", "Font size", 28, 16, 48),
            _f("text_color", "Text colour", K.COLOR, "#111111"),
            _f("background_color", "Background", K.COLOR, "#ffffff"),
            _align("center"),
            _f("accent_color", "Accent colour", K.COLOR, "#e63529"),
            _f("show_accent", "Show accent line", K.TOGGLE, True),
            _f("padding", "Padding", K.NUMBER, 30),
        ),
    ),
    SectionType(
        type="divider",
        label="Divider",
        icon="horizontal_rule",
        category="structure",
        fields=(
            _f("color", "Line colour", K.COLOR, "#e5e5e5"),
            _range("thickness", "Thickness", 1, 1, 10, required=True),
            _f("line_style", "Line style", K.SELECT, "solid", options=("solid", "dashed", "dotted")),
            _f("margin_top", "Space above", K.NUMBER, 20),
            _f("margin_bottom", "Space below", K.NUMBER, 20),
            _f("background_color", "Background", K.COLOR, "#ffffff"),
        ),
    ),
    SectionType(
        type="spacer",
        label="Spacer",
        icon="height",
        category="structure",
        fields=(
            _range("height", "Height", 30, 4, 120, 2, required=True),
            _f("background_color", "Background", K.COLOR, "#ffffff"),
        ),
    ),
    SectionType(
        type="footer",
        label="Footer",
        icon="bottom_navigation",
        category="structure",
        fields=(
            _ai(
                "footer_text",
                "Footer text",
                K.TEXTAREA,
                "You received this email because you subscribed to our newsletter.",
            ),
            # Prose, despite the key: eligibility comes from the flag
            _ai("social_link_text", "Social blurb", K.TEXTAREA, "Follow us for new arrivals and members-only offers."),
            _f("footer_links", "Footer links", K.LINKS, [{"label": "Unsubscribe", "url": "{{unsubscribe_url}}"}]),
            _f("text_color", "Text colour", K.COLOR, "#999999"),
            _f("background_color", "Background", K.COLOR, "#f5f5f5"),
            _f("show_unsubscribe", "Show unsubscribe", K.TOGGLE, True),
        ),
    ),
    SectionType(
        type="hero",
        label="Hero",
        icon="image",
        category="content",
        fields=(
            _f("background_color", "Background", K.COLOR, "#1a1a2e"),
            _f("image_url", "Background image", K.IMAGE),
            _ai("headline", "Headline", K.TEXT, "Your Campaign Headline", required=True),
            _range("headline_size", "Headline size", 36, 20, 60),
            _f("headline_color", "Headline colour", K.COLOR, "#ffffff"),
            _ai("subtext", "Subtext", K.TEXTAREA, "Discover our latest collection"),
            _f("subtext_color", "Subtext colour", K.COLOR, "#cccccc"),
            _f("cta_text", "Button text", K.TEXT, "Shop Now"),
            _f("cta_url", "Button URL", K.TEXT),
            _f("cta_bg_color", "Button colour", K.COLOR, "#e63529"),
            _f("cta_text_color", "Button text colour", K.COLOR, "#ffffff"),
            _f("padding_top", "Padding top", K.NUMBER, 48),
            _f("padding_bottom", "Padding bottom", K.NUMBER, 48),
        ),
    ),
    SectionType(
        type="text",
        label="Text Block",
        icon="notes",
        category="content",
        fields=(
            _ai("heading", "Heading", K.TEXT),
            _ai("body", "Body", K.TEXTAREA, "Add your text content here."),
            _f("text_color", "Text colour", K.COLOR, "#333333"),
            _f("background_color", "Background", K.COLOR, "#ffffff"),
            _range("font_size", "Font size", 15, 11, 24),
            _f("padding", "Padding", K.NUMBER, 30),
            _align("left"),
        ),
    ),
    SectionType(
        type="image",
        label="Image",
        icon="photo",
        category="content",
        fields=(
            _f("image_url", "Image", K.IMAGE),
            _f("alt_text", "Alt text", K.TEXT),
            _f("link_url", "Link URL", K.TEXT),
            _range("width", "Width (%)", 100, 10, 100, 5),
            _f("height", "Height (px)", K.NUMBER, 300),
            _align("center"),
            _f("caption", "Caption", K.TEXT),
            _f("background_color", "Background", K.COLOR, "#ffffff"),
        ),
    ),
    SectionType(
        type="list",
        label="List",
        icon="format_list_bulleted",
        category="content",
        fields=(
            _ai("heading", "Heading", K.TEXT),
            _ai(
                "items",
                "Items",
                K.JSON,
                [{"text": "First item"}, {"text": "Second item"}, {"text": "Third item"}],
            ),
            _f("list_style", "List style", K.SELECT, "bullets", options=("bullets", "numbers", "checks", "none")),
            _f("text_color", "Text colour", K.COLOR, "#333333"),
            _f("background_color", "Background", K.COLOR, "#ffffff"),
            _f("accent_color", "Marker colour", K.COLOR, "#e63529"),
            _range("font_size", "Font size", 15, 11, 24),
            _f("padding", "Padding", K.NUMBER, 30),
        ),
    ),
    SectionType(
        type="banner",
        label="Banner",
        icon="campaign",
        category="content",
        fields=(
            _f("background_color", "Background", K.COLOR, "#e63529"),
            _f("text_color", "Text colour", K.COLOR, "#ffffff"),
            _ai("heading", "Heading", K.TEXT, "Special Offer!", required=True),
            _ai("subtext", "Subtext", K.TEXTAREA, "Don't miss out on this limited time deal."),
            _f("padding", "Padding", K.NUMBER, 30),
        ),
    ),
    SectionType(
        type="products",
        label="Products",
        icon="shopping_cart",
        category="commerce",
        fields=(
            _ai("heading", "Heading", K.TEXT),
            _f("product_ids", "Products", K.PRODUCT_SELECT),
            _f("columns", "Columns", K.SELECT, "1", options=("1", "2", "3"), required=True),
            _f("show_price", "Show price", K.TOGGLE, True),
            _f("show_button", "Show button", K.TOGGLE, True),
            _f("button_text", "Button text", K.TEXT, "Buy Now"),
            _f("button_color", "Button colour", K.COLOR, "#e63529"),
            _f("background_color", "Background", K.COLOR, "#ffffff"),
            _f("text_color", "Text colour", K.COLOR, "#333333"),
        ),
    ),
    SectionType(
        type="coupon",
        label="Coupon",
        icon="local_offer",
        category="commerce",
        fields=(
            _ai("headline", "Headline", K.TEXT, "Exclusive offer for you"),
            _f("coupon_code", "Coupon code", K.TEXT, "SAVE10", required=True),
            _ai("discount_text", "Offer text", K.TEXT, "Get 10% off your order!"),
            _f("expiry", "Expiry date", K.DATE),
            _f("expiry_text", "Expiry text", K.TEXT, "Expires in 7 days"),
            _f("background_color", "Background", K.COLOR, "#fff8e6"),
            _f("accent_color", "Accent colour", K.COLOR, "#e63529"),
            _f("text_color", "Text colour", K.COLOR, "#333333"),
        ),
    ),
    SectionType(
        type="cta",
        label="Call to Action",
        icon="ads_click",
        category="commerce",
        fields=(
            _ai("heading", "Heading", K.TEXT, "Ready to shop?"),
            _ai("subtext", "Subtext", K.TEXTAREA, "Click below to explore our collection."),
            _f("button_text", "Button text", K.TEXT, "Shop Now", required=True),
            _f("button_url", "Button URL", K.TEXT),
            _f("button_bg_color", "Button colour", K.COLOR, "#e63529"),
            _f("button_text_color", "Button text colour", K.COLOR, "#ffffff"),
            _f("background_color", "Background", K.COLOR, "#f5f5f5"),
            _f("text_color", "Text colour", K.COLOR, "#333333"),
            _f("padding", "Padding", K.NUMBER, 40),
        ),
    ),
)

_BY_TYPE: dict[str, SectionType] = {t.type: t for t in SECTION_TYPES}


def get_type(section_type: str) -> SectionType:
    """Look up a section type. Raises UnknownSectionType."""
    try:
        return _BY_TYPE[section_type]
    except KeyError:
        raise UnknownSectionType(section_type) from None


def has_type(section_type: str) -> bool:
    return section_type in _BY_TYPE


def list_types() -> list[dict[str, Any]]:
    """
    The full catalog grouped by palette category, in stable order.

    Returns: [{"category": "structure", "label": "Structure", "types": [SectionType, ...]}, ...]
    """
    groups = []
    for cat_id, cat_label in CATEGORIES:
        groups.append(
            {
                "category": cat_id,
                "label": cat_label,
                "types": [t for t in SECTION_TYPES if t.category == cat_id],
            }
        )
    return groups
