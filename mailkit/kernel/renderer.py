"""
Mailkit Kernel: Section Renderer

Pure functions: (template model, product resolver, context) -> HTML string.
No side effects, no IO beyond the resolver call, and the model is only read.

Email clients have poor CSS support, so:
  - layout is nested tables only, every style is inlined
  - one <style> block carries @media rules for mobile reflow, layered on top
  - the content column is width:100%;max-width:600px

Each section type has a mustache template (rendered with chevron) and a
context builder. Field values reach the template through the field kind
map, so an image field always renders as <img> and a date field always as
"1 Mar 2026". A section that fails to render is replaced by an empty
placeholder and logged; the rest of the document renders normally.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from html import escape as _html_escape
from typing import Any

import chevron

from mailkit.kernel import tokens
from mailkit.kernel.fields import coerce, empty_value, format_date
from mailkit.kernel.model import TemplateModel
from mailkit.kernel.products import ProductResolver, resolve_products
from mailkit.kernel.registry import get_type
from mailkit.kernel.types import (
    FieldKind,
    RenderedEmail,
    RenderOptions,
    SectionInstance,
    SectionType,
)

logger = logging.getLogger(__name__)

FONT_FAMILY = "Arial, 'Helvetica Neue', Helvetica, sans-serif"
PAGE_BACKGROUND = "#f5f5f5"
MOBILE_BREAKPOINT = 620

# Kinds whose values may carry {{tokens}} for the document context
_SUBSTITUTED_KINDS = {FieldKind.TEXT, FieldKind.TEXTAREA, FieldKind.IMAGE}

LIST_MARKERS = {"bullets": "&#8226;", "checks": "&#10003;", "none": ""}

# Product image edge length per column count
PRODUCT_IMAGE_SIZE = {1: 260, 2: 240, 3: 160}


class SectionRenderError(ValueError):
    """A section's stored settings cannot be rendered."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_section(
    instance: SectionInstance,
    resolver: ProductResolver | None = None,
    context: dict[str, Any] | None = None,
) -> str:
    """
    Render one section as a self-contained <table> block.

    Never raises for bad data: a section that cannot be rendered comes back
    as an empty placeholder block, with a warning naming its id and type.
    """
    return _render_section_safe(instance, resolver, build_context(context))


def render_document(
    model: TemplateModel,
    resolver: ProductResolver | None = None,
    context: dict[str, Any] | None = None,
    options: RenderOptions | None = None,
) -> str:
    """Render the complete email document. Reads the model, never mutates it."""
    opts = options or RenderOptions()
    doc_ctx = build_context(context, opts)
    sections_html = "\n".join(_render_section_safe(s, resolver, doc_ctx) for s in model.sections)
    return chevron.render(
        DOCUMENT_TEMPLATE,
        {
            "title": doc_ctx.get("subject") or model.name,
            "preview_text": doc_ctx.get("preview_text", ""),
            "sections": sections_html,
            "max_width": opts.max_width,
            "breakpoint": MOBILE_BREAKPOINT,
            "page_bg": PAGE_BACKGROUND,
            "font": FONT_FAMILY,
        },
    )


def render_email(
    model: TemplateModel,
    resolver: ProductResolver | None = None,
    context: dict[str, Any] | None = None,
    options: RenderOptions | None = None,
) -> RenderedEmail:
    """HTML, plain text and metadata for the delivery collaborator."""
    opts = options or RenderOptions()
    doc_ctx = build_context(context, opts)
    return RenderedEmail(
        html=render_document(model, resolver, context, opts),
        text=render_plain_text(model, resolver, context),
        subject=str(doc_ctx.get("subject", "")),
        preview_text=str(doc_ctx.get("preview_text", "")),
    )


def build_context(context: dict[str, Any] | None = None, options: RenderOptions | None = None) -> dict[str, Any]:
    """
    The document token context: standard campaign tokens over the caller's
    context, with subject / preview text taken from options when unset.
    """
    ctx = tokens.build_token_map(context or {})
    if options is not None:
        if not ctx.get("subject"):
            ctx["subject"] = options.subject
        if not ctx.get("preview_text"):
            ctx["preview_text"] = options.preview_text
    return ctx


def escape(text: Any) -> str:
    """HTML-escape text for safe embedding (quotes included)."""
    return _html_escape("" if text is None else str(text), quote=True)


# ---------------------------------------------------------------------------
# Section pipeline
# ---------------------------------------------------------------------------


def _render_section_safe(
    instance: SectionInstance,
    resolver: ProductResolver | None,
    doc_ctx: dict[str, Any],
) -> str:
    try:
        return _render_section_strict(instance, resolver, doc_ctx)
    except Exception as e:
        logger.warning("renderer: section %s (%s) failed, rendering placeholder: %s", instance.id, instance.type, e)
        return _placeholder(instance)


def _render_section_strict(
    instance: SectionInstance,
    resolver: ProductResolver | None,
    doc_ctx: dict[str, Any],
) -> str:
    section_type = get_type(instance.type)
    values = section_values(instance, section_type, doc_ctx)
    builder, template = _SECTIONS[section_type.type]
    ctx = builder(values, doc_ctx, resolver)
    ctx.setdefault("font", FONT_FAMILY)
    body = chevron.render(template, ctx, partials_dict=PARTIALS)
    return chevron.render(
        SECTION_WRAPPER,
        {
            "id": _comment_safe(instance.id),
            "bg": values.get("background_color", ""),
            "body": body,
        },
    )


def section_values(
    instance: SectionInstance,
    section_type: SectionType,
    doc_ctx: dict[str, Any],
) -> dict[str, Any]:
    """
    Coerce every stored field through its kind and substitute tokens in
    text-like values. Missing optional fields get their kind's empty value;
    a missing required field fails the section.
    """
    values: dict[str, Any] = {}
    for f in section_type.fields:
        raw = instance.settings.get(f.key)
        if raw is None:
            if f.required:
                raise SectionRenderError(f"required field {f.key!r} is missing")
            values[f.key] = empty_value(f)
            continue
        value = coerce(f, raw)
        if f.kind in _SUBSTITUTED_KINDS:
            value = _sub(value, doc_ctx)
        elif f.kind == FieldKind.LINKS:
            value = [{"label": _sub(link["label"], doc_ctx), "url": _sub(link["url"], doc_ctx)} for link in value]
        values[f.key] = value
    return values


def _sub(text: str, doc_ctx: dict[str, Any]) -> str:
    if "{{" not in text:
        return text
    return tokens.render(text, doc_ctx, escape=False)


def _placeholder(instance: SectionInstance) -> str:
    return chevron.render(PLACEHOLDER_TEMPLATE, {"id": _comment_safe(instance.id)})


def _comment_safe(text: str) -> str:
    return str(text).replace("--", "")


# ---------------------------------------------------------------------------
# Shared fragments
# ---------------------------------------------------------------------------


def _img(url: str, width: int, height: int, alt: str = "", css_class: str = "mk-img") -> str:
    """An <img> with explicit integer dimensions. Empty url renders nothing."""
    if not url:
        return ""
    width = int(width)
    height = int(height)
    return (
        f'<img src="{escape(url)}" alt="{escape(alt)}" width="{width}" height="{height}" class="{css_class}" '
        f'style="display:block;border:0;outline:none;text-decoration:none;'
        f'width:100%;max-width:{width}px;height:auto;margin:0 auto;">'
    )


def _multiline(text: str) -> str:
    return escape(text).replace("\r\n", "\n").replace("\n", "<br>")


def _paragraphs(text: str) -> list[dict[str, str]]:
    blocks = [b.strip() for b in text.replace("\r\n", "\n").split("\n\n")]
    return [{"html": _multiline(b)} for b in blocks if b]


def _button(text: str, url: str, bg: str, color: str, doc_ctx: dict[str, Any]) -> dict[str, str]:
    return {
        "button_text": text,
        "button_url": url or str(doc_ctx.get("store_url") or "#"),
        "button_bg": bg,
        "button_color": color,
    }


# ---------------------------------------------------------------------------
# Context builders, one per section type
# ---------------------------------------------------------------------------

Builder = Callable[[dict[str, Any], dict[str, Any], ProductResolver | None], dict[str, Any]]


def _header(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> dict[str, Any]:
    logo = _img(v["logo_url"], v["logo_width"], v["logo_height"], alt=v["store_name"] or str(doc.get("store_name", "")))
    links = [link for link in v["nav_links"] if link["label"]]
    return {
        "logo": logo,
        "has_logo": bool(logo),
        "store_name": v["store_name"] or doc.get("store_name", ""),
        "store_url": doc.get("store_url", ""),
        "color": v["text_color"],
        "show_nav": bool(v["show_nav"] and links),
        "links": links,
    }


def _heading(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> dict[str, Any]:
    return {
        "text": v["text"],
        "subtext": v["subtext"],
        "has_subtext": bool(v["subtext"]),
        "font_size": v["font_size"],
        "color": v["text_color"],
        "align": v["alignment"],
        "accent": v["accent_color"],
        "show_accent": bool(v["show_accent"]),
        "padding": v["padding"],
    }


def _divider(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> dict[str, Any]:
    return {
        "color": v["color"],
        "thickness": v["thickness"],
        "line_style": v["line_style"],
        "margin_top": v["margin_top"],
        "margin_bottom": v["margin_bottom"],
    }


def _spacer(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> dict[str, Any]:
    return {"height": v["height"]}


def _footer(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> dict[str, Any]:
    unsubscribe = str(doc.get("unsubscribe_url", ""))
    # The links row, unsubscribe included, is shown only while the toggle is on
    links = [link for link in v["footer_links"] if link["label"]] if v["show_unsubscribe"] else []
    if v["show_unsubscribe"] and unsubscribe and not any(link["url"] == unsubscribe for link in links):
        links.append({"label": "Unsubscribe", "url": unsubscribe})
    links_html = " &nbsp;|&nbsp; ".join(
        f'<a href="{escape(link["url"])}" target="_blank" style="color:{escape(v["text_color"])};'
        f'text-decoration:underline;">{escape(link["label"])}</a>'
        if link["url"]
        else escape(link["label"])
        for link in links
    )
    return {
        "footer_text": _multiline(v["footer_text"]),
        "has_footer_text": bool(v["footer_text"]),
        "social_text": _multiline(v["social_link_text"]),
        "has_social_text": bool(v["social_link_text"]),
        "links": links_html,
        "has_links": bool(links),
        "color": v["text_color"],
    }


def _hero(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> dict[str, Any]:
    image = _img(v["image_url"], 600, 300, alt=v["headline"])
    ctx = {
        "image": image,
        "has_image": bool(image),
        "headline": v["headline"],
        "headline_size": v["headline_size"],
        "headline_color": v["headline_color"],
        "subtext": _multiline(v["subtext"]),
        "has_subtext": bool(v["subtext"]),
        "subtext_color": v["subtext_color"],
        "has_cta": bool(v["cta_text"]),
        "padding_top": v["padding_top"],
        "padding_bottom": v["padding_bottom"],
    }
    ctx.update(_button(v["cta_text"], v["cta_url"], v["cta_bg_color"], v["cta_text_color"], doc))
    return ctx


def _text(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> dict[str, Any]:
    return {
        "heading": v["heading"],
        "has_heading": bool(v["heading"]),
        "paragraphs": _paragraphs(v["body"]),
        "color": v["text_color"],
        "font_size": v["font_size"],
        "heading_size": v["font_size"] + 7,
        "padding": v["padding"],
        "align": v["alignment"],
    }


def _image(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> dict[str, Any]:
    width = round(600 * v["width"] / 100)
    image = _img(v["image_url"], width, v["height"], alt=v["alt_text"])
    return {
        "image": image,
        "has_image": bool(image),
        "link_url": v["link_url"],
        "has_link": bool(v["link_url"]),
        "align": v["alignment"],
        "caption": v["caption"],
        "has_caption": bool(v["caption"]),
    }


def _list(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> dict[str, Any]:
    raw_items = v["items"] if v["items"] is not None else []
    if not isinstance(raw_items, list):
        raise SectionRenderError("list items must be a list")

    items = []
    for n, item in enumerate(raw_items, start=1):
        if isinstance(item, dict):
            text = item.get("text", "")
        elif isinstance(item, str):
            text = item
        else:
            raise SectionRenderError(f"list item {n} is not text")
        text = _sub(str(text), doc)
        if not text:
            continue
        marker = f"{len(items) + 1}." if v["list_style"] == "numbers" else LIST_MARKERS[v["list_style"]]
        items.append({"text": text, "marker": marker, "has_marker": bool(marker)})

    return {
        "heading": v["heading"],
        "has_heading": bool(v["heading"]),
        "items": items,
        "color": v["text_color"],
        "accent": v["accent_color"],
        "font_size": v["font_size"],
        "padding": v["padding"],
    }


def _banner(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> dict[str, Any]:
    return {
        "heading": v["heading"],
        "subtext": _multiline(v["subtext"]),
        "has_subtext": bool(v["subtext"]),
        "color": v["text_color"],
        "padding": v["padding"],
    }


def _products(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> dict[str, Any]:
    columns = int(v["columns"])
    ids = v["product_ids"]
    products = resolve_products(resolver, ids)
    pct = math.floor(100 / columns)
    size = PRODUCT_IMAGE_SIZE[columns]

    cells = []
    for p in products:
        cell = {
            "filler": False,
            "name": p.name,
            "price": p.price_display,
            "has_price": bool(v["show_price"] and p.price_display),
            "image": _img(p.image_url, size, size, alt=p.name),
        }
        cell.update(_button(v["button_text"], p.url, v["button_color"], "#ffffff", doc))
        cells.append(cell)

    rows = []
    for start in range(0, len(cells), columns):
        row = cells[start : start + columns]
        row += [{"filler": True}] * (columns - len(row))
        rows.append({"cells": row})

    if not ids:
        empty_message = "No products selected"
    elif not products:
        empty_message = "These products are no longer available"
    else:
        empty_message = ""

    return {
        "heading": v["heading"],
        "has_heading": bool(v["heading"]),
        "rows": rows,
        "pct": pct,
        "color": v["text_color"],
        "show_button": bool(v["show_button"] and v["button_text"]),
        "empty_message": empty_message,
    }


def _coupon(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> dict[str, Any]:
    expiry = f"Expires {format_date(v['expiry'])}" if v["expiry"] else v["expiry_text"]
    return {
        "headline": v["headline"],
        "has_headline": bool(v["headline"]),
        "code": v["coupon_code"],
        "discount_text": v["discount_text"],
        "has_discount_text": bool(v["discount_text"]),
        "expiry": expiry,
        "has_expiry": bool(expiry),
        "accent": v["accent_color"],
        "color": v["text_color"],
    }


def _cta(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> dict[str, Any]:
    ctx = {
        "heading": v["heading"],
        "has_heading": bool(v["heading"]),
        "subtext": _multiline(v["subtext"]),
        "has_subtext": bool(v["subtext"]),
        "color": v["text_color"],
        "padding": v["padding"],
    }
    ctx.update(_button(v["button_text"], v["button_url"], v["button_bg_color"], v["button_text_color"], doc))
    return ctx


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

SECTION_WRAPPER = """<!-- section:{{id}} -->
<table role="presentation" width="100%" cellpadding="0" cellspacing="0" border="0" style="width:100%;background-color:{{bg}};">
{{{body}}}
</table>"""

PLACEHOLDER_TEMPLATE = """<!-- section:{{id}} failed -->
<table role="presentation" width="100%" cellpadding="0" cellspacing="0" border="0" style="width:100%;">
<tr><td height="0" style="height:0;font-size:0;line-height:0;">&nbsp;</td></tr>
</table>"""

PARTIALS = {
    "button": (
        '<table role="presentation" cellpadding="0" cellspacing="0" border="0" align="center" style="margin:0 auto;">'
        '<tr><td align="center" bgcolor="{{button_bg}}" style="border-radius:4px;background-color:{{button_bg}};">'
        '<a href="{{button_url}}" target="_blank" style="display:inline-block;padding:14px 32px;'
        "font-family:{{{font}}};font-size:16px;font-weight:bold;line-height:1;color:{{button_color}};"
        'text-decoration:none;border-radius:4px;">{{button_text}}</a>'
        "</td></tr></table>"
    ),
}

HEADER_TEMPLATE = """<tr>
<td align="center" style="padding:20px 30px;font-family:{{{font}}};">
{{#has_logo}}<a href="{{store_url}}" target="_blank" style="text-decoration:none;">{{{logo}}}</a>{{/has_logo}}
{{^has_logo}}<span style="font-size:22px;font-weight:bold;color:{{color}};">{{store_name}}</span>{{/has_logo}}
{{#show_nav}}
<table role="presentation" class="mk-nav" width="100%" cellpadding="0" cellspacing="0" border="0">
<tr><td align="center" style="padding-top:14px;font-family:{{{font}}};font-size:13px;">
{{#links}}<a href="{{url}}" target="_blank" style="color:{{color}};text-decoration:none;margin:0 10px;">{{label}}</a>{{/links}}
</td></tr>
</table>
{{/show_nav}}
</td>
</tr>"""

HEADING_TEMPLATE = """<tr>
<td align="{{align}}" style="padding:{{padding}}px 30px;font-family:{{{font}}};text-align:{{align}};">
<h2 style="margin:0;font-size:{{font_size}}px;line-height:1.25;font-weight:bold;color:{{color}};">{{text}}</h2>
{{#show_accent}}
<table role="presentation" cellpadding="0" cellspacing="0" border="0" align="{{align}}" style="margin-top:12px;">
<tr><td width="60" height="3" style="width:60px;height:3px;background-color:{{accent}};font-size:0;line-height:0;">&nbsp;</td></tr>
</table>
{{/show_accent}}
{{#has_subtext}}<p style="clear:both;margin:12px 0 0 0;font-size:15px;line-height:1.5;color:{{color}};">{{subtext}}</p>{{/has_subtext}}
</td>
</tr>"""

DIVIDER_TEMPLATE = """<tr>
<td style="padding:{{margin_top}}px 30px {{margin_bottom}}px 30px;">
<table role="presentation" width="100%" cellpadding="0" cellspacing="0" border="0">
<tr><td style="border-top:{{thickness}}px {{line_style}} {{color}};font-size:0;line-height:0;height:0;">&nbsp;</td></tr>
</table>
</td>
</tr>"""

SPACER_TEMPLATE = """<tr>
<td height="{{height}}" style="height:{{height}}px;font-size:0;line-height:0;">&nbsp;</td>
</tr>"""

FOOTER_TEMPLATE = """<tr>
<td align="center" style="padding:30px;font-family:{{{font}}};font-size:12px;line-height:1.6;color:{{color}};text-align:center;">
{{#has_footer_text}}<p style="margin:0 0 10px 0;">{{{footer_text}}}</p>{{/has_footer_text}}
{{#has_social_text}}<p style="margin:0 0 10px 0;">{{{social_text}}}</p>{{/has_social_text}}
{{#has_links}}<p style="margin:0;">{{{links}}}</p>{{/has_links}}
</td>
</tr>"""

HERO_TEMPLATE = """{{#has_image}}<tr><td align="center" style="padding:0;">{{{image}}}</td></tr>{{/has_image}}
<tr>
<td align="center" style="padding:{{padding_top}}px 30px {{padding_bottom}}px 30px;font-family:{{{font}}};text-align:center;">
<h1 style="margin:0 0 16px 0;font-size:{{headline_size}}px;line-height:1.2;font-weight:bold;color:{{headline_color}};">{{headline}}</h1>
{{#has_subtext}}<p style="margin:0 0 24px 0;font-size:16px;line-height:1.5;color:{{subtext_color}};">{{{subtext}}}</p>{{/has_subtext}}
{{#has_cta}}{{> button}}{{/has_cta}}
</td>
</tr>"""

TEXT_TEMPLATE = """<tr>
<td align="{{align}}" style="padding:{{padding}}px 30px;font-family:{{{font}}};text-align:{{align}};color:{{color}};">
{{#has_heading}}<h2 style="margin:0 0 12px 0;font-size:{{heading_size}}px;line-height:1.3;font-weight:bold;color:{{color}};">{{heading}}</h2>{{/has_heading}}
{{#paragraphs}}<p style="margin:0 0 12px 0;font-size:{{font_size}}px;line-height:1.6;color:{{color}};">{{{html}}}</p>{{/paragraphs}}
</td>
</tr>"""

IMAGE_TEMPLATE = """<tr>
<td align="{{align}}" style="padding:0;">
{{#has_image}}{{#has_link}}<a href="{{link_url}}" target="_blank" style="text-decoration:none;">{{/has_link}}{{{image}}}{{#has_link}}</a>{{/has_link}}{{/has_image}}
{{#has_caption}}<p style="margin:8px 0 0 0;font-family:{{{font}}};font-size:12px;line-height:1.4;color:#777777;text-align:{{align}};">{{caption}}</p>{{/has_caption}}
</td>
</tr>"""

LIST_TEMPLATE = """<tr>
<td style="padding:{{padding}}px 30px;font-family:{{{font}}};color:{{color}};">
{{#has_heading}}<h2 style="margin:0 0 12px 0;font-size:20px;line-height:1.3;font-weight:bold;color:{{color}};">{{heading}}</h2>{{/has_heading}}
<table role="presentation" width="100%" cellpadding="0" cellspacing="0" border="0">
{{#items}}<tr>
{{#has_marker}}<td width="24" valign="top" style="width:24px;padding:0 0 8px 0;font-size:{{font_size}}px;line-height:1.5;font-weight:bold;color:{{accent}};">{{{marker}}}</td>{{/has_marker}}
<td valign="top" style="padding:0 0 8px 0;font-size:{{font_size}}px;line-height:1.5;color:{{color}};">{{text}}</td>
</tr>
{{/items}}
</table>
</td>
</tr>"""

BANNER_TEMPLATE = """<tr>
<td align="center" style="padding:{{padding}}px 30px;font-family:{{{font}}};text-align:center;color:{{color}};">
<h2 style="margin:0;font-size:26px;line-height:1.25;font-weight:bold;color:{{color}};">{{heading}}</h2>
{{#has_subtext}}<p style="margin:10px 0 0 0;font-size:15px;line-height:1.5;color:{{color}};">{{{subtext}}}</p>{{/has_subtext}}
</td>
</tr>"""

PRODUCTS_TEMPLATE = """{{#has_heading}}<tr>
<td align="center" style="padding:30px 30px 10px 30px;font-family:{{{font}}};">
<h2 style="margin:0;font-size:22px;line-height:1.3;font-weight:bold;color:{{color}};">{{heading}}</h2>
</td>
</tr>{{/has_heading}}
<tr>
<td style="padding:10px 20px;">
<table role="presentation" width="100%" cellpadding="0" cellspacing="0" border="0">
{{#rows}}<tr>
{{#cells}}{{#filler}}<td class="mk-col" width="{{pct}}%" style="width:{{pct}}%;">&nbsp;</td>{{/filler}}{{^filler}}<td class="mk-col mk-product" width="{{pct}}%" valign="top" align="center" style="width:{{pct}}%;padding:10px;font-family:{{{font}}};text-align:center;">
{{{image}}}
<p style="margin:12px 0 4px 0;font-size:15px;line-height:1.4;font-weight:bold;color:{{color}};">{{name}}</p>
{{#has_price}}<p style="margin:0 0 12px 0;font-size:14px;line-height:1.4;color:{{color}};">{{price}}</p>{{/has_price}}
{{#show_button}}{{> button}}{{/show_button}}
</td>{{/filler}}{{/cells}}
</tr>
{{/rows}}
{{#empty_message}}<tr><td align="center" style="padding:20px;font-family:{{{font}}};font-size:14px;color:#999999;">{{empty_message}}</td></tr>{{/empty_message}}
</table>
</td>
</tr>"""

COUPON_TEMPLATE = """<tr>
<td align="center" style="padding:30px;font-family:{{{font}}};text-align:center;color:{{color}};">
{{#has_headline}}<h2 style="margin:0 0 8px 0;font-size:22px;line-height:1.3;font-weight:bold;color:{{color}};">{{headline}}</h2>{{/has_headline}}
{{#has_discount_text}}<p style="margin:0 0 16px 0;font-size:16px;line-height:1.5;color:{{color}};">{{discount_text}}</p>{{/has_discount_text}}
<table role="presentation" cellpadding="0" cellspacing="0" border="0" align="center" style="margin:0 auto;">
<tr><td align="center" style="padding:14px 28px;border:2px dashed {{accent}};border-radius:6px;">
<span style="font-family:'Courier New', Courier, monospace;font-size:24px;font-weight:bold;letter-spacing:3px;color:{{accent}};">{{code}}</span>
</td></tr>
</table>
{{#has_expiry}}<p style="margin:12px 0 0 0;font-size:12px;line-height:1.4;color:#888888;">{{expiry}}</p>{{/has_expiry}}
</td>
</tr>"""

CTA_TEMPLATE = """<tr>
<td align="center" style="padding:{{padding}}px 30px;font-family:{{{font}}};text-align:center;color:{{color}};">
{{#has_heading}}<h2 style="margin:0 0 10px 0;font-size:24px;line-height:1.3;font-weight:bold;color:{{color}};">{{heading}}</h2>{{/has_heading}}
{{#has_subtext}}<p style="margin:0 0 20px 0;font-size:15px;line-height:1.5;color:{{color}};">{{{subtext}}}</p>{{/has_subtext}}
{{> button}}
</td>
</tr>"""

DOCUMENT_TEMPLATE = """<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">
<html xmlns="http://www.w3.org/1999/xhtml" lang="en">
<head>
<meta http-equiv="Content-Type" content="text/html; charset=UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<meta name="x-apple-disable-message-reformatting">
<title>{{title}}</title>
<!--[if mso]>
<style type="text/css">
table, td, p, a, span, h1, h2 { font-family: Arial, sans-serif !important; }
</style>
<![endif]-->
<style type="text/css">
@media only screen and (max-width:{{breakpoint}}px) {
  .mk-container { width:100% !important; }
  .mk-col { display:block !important; width:100% !important; max-width:100% !important; box-sizing:border-box; }
  .mk-nav { display:none !important; }
  .mk-img { width:100% !important; height:auto !important; }
}
</style>
</head>
<body style="margin:0;padding:0;background-color:{{page_bg}};">
{{#preview_text}}<div style="display:none;max-height:0;overflow:hidden;mso-hide:all;">{{preview_text}}</div>{{/preview_text}}
<center style="width:100%;background-color:{{page_bg}};">
<table role="presentation" width="100%" cellpadding="0" cellspacing="0" border="0" style="width:100%;background-color:{{page_bg}};">
<tr>
<td align="center" style="padding:20px 0;">
<!--[if mso]><table role="presentation" width="{{max_width}}" cellpadding="0" cellspacing="0" border="0"><tr><td><![endif]-->
<table role="presentation" class="mk-container" width="100%" cellpadding="0" cellspacing="0" border="0" style="width:100%;max-width:{{max_width}}px;margin:0 auto;font-family:{{{font}}};">
<tr>
<td>
{{{sections}}}
</td>
</tr>
</table>
<!--[if mso]></td></tr></table><![endif]-->
</td>
</tr>
</table>
</center>
</body>
</html>
"""

_SECTIONS: dict[str, tuple[Builder, str]] = {
    "header": (_header, HEADER_TEMPLATE),
    "heading": (_heading, HEADING_TEMPLATE),
    "divider": (_divider, DIVIDER_TEMPLATE),
    "spacer": (_spacer, SPACER_TEMPLATE),
    "footer": (_footer, FOOTER_TEMPLATE),
    "hero": (_hero, HERO_TEMPLATE),
    "text": (_text, TEXT_TEMPLATE),
    "image": (_image, IMAGE_TEMPLATE),
    "list": (_list, LIST_TEMPLATE),
    "banner": (_banner, BANNER_TEMPLATE),
    "products": (_products, PRODUCTS_TEMPLATE),
    "coupon": (_coupon, COUPON_TEMPLATE),
    "cta": (_cta, CTA_TEMPLATE),
}


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------


def render_plain_text(
    model: TemplateModel,
    resolver: ProductResolver | None = None,
    context: dict[str, Any] | None = None,
) -> str:
    """
    Plain-text alternative body. Sections that fail are skipped with a
    warning, mirroring the HTML placeholder behaviour.
    """
    doc_ctx = build_context(context)
    blocks = []
    for instance in model.sections:
        try:
            section_type = get_type(instance.type)
            values = section_values(instance, section_type, doc_ctx)
            lines = _TEXT_HANDLERS.get(section_type.type, _text_generic)(values, doc_ctx, resolver)
        except Exception as e:
            logger.warning("renderer: plain text for section %s (%s) failed: %s", instance.id, instance.type, e)
            continue
        lines = [line for line in lines if line]
        if lines:
            blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n" if blocks else ""


def _text_generic(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> list[str]:
    keys = ("headline", "heading", "text", "subtext", "body", "discount_text")
    return [str(v[k]) for k in keys if v.get(k)]


def _text_header(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> list[str]:
    return [str(v["store_name"] or doc.get("store_name", ""))]


def _text_hero(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> list[str]:
    lines = [v["headline"].upper(), v["subtext"]]
    if v["cta_text"]:
        lines.append(f"{v['cta_text']}: {v['cta_url'] or doc.get('store_url', '')}".rstrip(": "))
    return lines


def _text_list(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> list[str]:
    ctx = _list(v, doc, resolver)
    lines = [ctx["heading"]]
    for item in ctx["items"]:
        marker = item["marker"] if v["list_style"] == "numbers" else "-"
        lines.append(f"{marker} {item['text']}")
    return lines


def _text_products(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> list[str]:
    lines = [v["heading"]]
    for p in resolve_products(resolver, v["product_ids"]):
        price = f" ({p.price_display})" if v["show_price"] and p.price_display else ""
        lines.append(f"- {p.name}{price}" + (f": {p.url}" if p.url else ""))
    return lines


def _text_coupon(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> list[str]:
    ctx = _coupon(v, doc, resolver)
    return [ctx["headline"], ctx["discount_text"], f"Code: {ctx['code']}", ctx["expiry"]]


def _text_cta(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> list[str]:
    url = v["button_url"] or doc.get("store_url", "")
    return [v["heading"], v["subtext"], f"{v['button_text']}: {url}" if url else v["button_text"]]


def _text_footer(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> list[str]:
    lines = [v["footer_text"], v["social_link_text"]]
    if v["show_unsubscribe"]:
        lines += [f"{link['label']}: {link['url']}" if link["url"] else link["label"] for link in v["footer_links"]]
    return lines


def _text_none(v: dict[str, Any], doc: dict[str, Any], resolver: ProductResolver | None) -> list[str]:
    return []


_TEXT_HANDLERS: dict[str, Callable[..., list[str]]] = {
    "header": _text_header,
    "hero": _text_hero,
    "list": _text_list,
    "products": _text_products,
    "coupon": _text_coupon,
    "cta": _text_cta,
    "footer": _text_footer,
    "divider": _text_none,
    "spacer": _text_none,
    "image": _text_none,
}
