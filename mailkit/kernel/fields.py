"""
Mailkit Kernel: Field Kinds

One KindSpec per FieldKind, registered in KIND_SPECS. Every place that needs
to treat a value according to its field (merge coercion, renderer context,
plain-text output, editor controls) goes through this map. Values are never
inspected to guess what kind they are.

Adding a kind: extend FieldKind, then add a KindSpec here.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any

from mailkit.kernel.registry import get_type
from mailkit.kernel.types import FieldKind, FieldSchema, SectionInstance

# Fixed English month names so date output never depends on the process locale
MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
TOKEN_URL_PATTERN = re.compile(r"^\{\{[A-Za-z_][A-Za-z0-9_]*\}\}$")

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off", ""}


class FieldValueError(ValueError):
    """A value does not fit the kind of the field it is written to."""

    def __init__(self, key: str, message: str):
        super().__init__(f"{key}: {message}")
        self.key = key
        self.message = message


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def _coerce_text(f: FieldSchema, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        raise FieldValueError(f.key, "expected text, got a boolean")
    if isinstance(value, (int, float)):
        return _number_text(value)
    if not isinstance(value, str):
        raise FieldValueError(f.key, f"expected text, got {type(value).__name__}")
    return value


def _coerce_number(f: FieldSchema, value: Any) -> int | float:
    if isinstance(value, bool):
        raise FieldValueError(f.key, "expected a number, got a boolean")
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise FieldValueError(f.key, f"expected a number, got {value!r}") from None
    else:
        raise FieldValueError(f.key, f"expected a number, got {type(value).__name__}")
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def _coerce_range(f: FieldSchema, value: Any) -> int | float:
    number = _coerce_number(f, value)
    if f.min is not None and number < f.min:
        raise FieldValueError(f.key, f"{number} is below the minimum {f.min:g}")
    if f.max is not None and number > f.max:
        raise FieldValueError(f.key, f"{number} is above the maximum {f.max:g}")
    return number


def _coerce_color(f: FieldSchema, value: Any) -> str:
    if not isinstance(value, str) or not COLOR_PATTERN.match(value.strip()):
        raise FieldValueError(f.key, f"expected a hex colour, got {value!r}")
    return value.strip().lower()


def _coerce_toggle(f: FieldSchema, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise FieldValueError(f.key, f"expected on/off, got {value!r}")


def _coerce_select(f: FieldSchema, value: Any) -> str:
    if isinstance(value, bool) or value is None:
        raise FieldValueError(f.key, f"expected one of {list(f.options)}, got {value!r}")
    text = _number_text(value) if isinstance(value, (int, float)) else str(value)
    if text not in f.options:
        raise FieldValueError(f.key, f"expected one of {list(f.options)}, got {value!r}")
    return text


def _coerce_image(f: FieldSchema, value: Any) -> str:
    url = _coerce_text(f, value).strip()
    if url == "" or TOKEN_URL_PATTERN.match(url):
        return url
    if url.startswith(("http://", "https://", "//")):
        return url
    raise FieldValueError(f.key, f"expected an image URL, got {url!r}")


def _coerce_date(f: FieldSchema, value: Any) -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        if DATE_PATTERN.match(text):
            try:
                date.fromisoformat(text)
            except ValueError:
                raise FieldValueError(f.key, f"not a calendar date: {text!r}") from None
            return text
    raise FieldValueError(f.key, f"expected a YYYY-MM-DD date, got {value!r}")


def _coerce_links(f: FieldSchema, value: Any) -> list[dict[str, str]]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            raise FieldValueError(f.key, "links must be a JSON list") from None
    if not isinstance(value, list):
        raise FieldValueError(f.key, "links must be a list")
    links = []
    for item in value:
        if not isinstance(item, dict):
            raise FieldValueError(f.key, "each link must be an object with label and url")
        links.append({"label": str(item.get("label", "")), "url": str(item.get("url", ""))})
    return links


def _coerce_product_ids(f: FieldSchema, value: Any) -> list[int]:
    return parse_product_ids(value, key=f.key)


def _coerce_json(f: FieldSchema, value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value) if value.strip() else None
        except json.JSONDecodeError:
            raise FieldValueError(f.key, "invalid JSON") from None
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        raise FieldValueError(f.key, "value is not JSON-serialisable") from None
    return value


def parse_product_ids(value: Any, key: str = "product_ids") -> list[int]:
    """
    Parse a product reference list from a comma string or a list.
    Keeps order, drops duplicates. Non-positive or non-numeric ids are errors.
    """
    if value is None or value == "":
        return []
    if isinstance(value, str):
        parts: list[Any] = [p.strip() for p in value.split(",") if p.strip()]
    elif isinstance(value, (list, tuple)):
        parts = list(value)
    elif isinstance(value, int) and not isinstance(value, bool):
        parts = [value]
    else:
        raise FieldValueError(key, f"expected product ids, got {type(value).__name__}")

    ids: list[int] = []
    for part in parts:
        if isinstance(part, bool):
            raise FieldValueError(key, "product ids must be numbers")
        try:
            pid = int(part)
        except (TypeError, ValueError):
            raise FieldValueError(key, f"invalid product id {part!r}") from None
        if pid <= 0:
            raise FieldValueError(key, f"invalid product id {part!r}")
        if pid not in ids:
            ids.append(pid)
    return ids


# ---------------------------------------------------------------------------
# Display (plain text)
# ---------------------------------------------------------------------------


def _number_text(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_date(iso: str) -> str:
    """'2026-03-01' -> '1 Mar 2026'. Day without padding, fixed month names."""
    if not iso:
        return ""
    d = date.fromisoformat(iso)
    return f"{d.day} {MONTHS[d.month - 1]} {d.year}"


def _display_plain(f: FieldSchema, value: Any) -> str:
    return "" if value is None else str(value)


def _display_number(f: FieldSchema, value: Any) -> str:
    return _number_text(value)


def _display_toggle(f: FieldSchema, value: Any) -> str:
    return "yes" if value else "no"


def _display_date(f: FieldSchema, value: Any) -> str:
    return format_date(value)


def _display_links(f: FieldSchema, value: Any) -> str:
    return "\n".join(f"{link['label']}: {link['url']}" if link["url"] else link["label"] for link in value)


def _display_products(f: FieldSchema, value: Any) -> str:
    return ",".join(str(pid) for pid in value)


def _display_json(f: FieldSchema, value: Any) -> str:
    return "" if value is None else json.dumps(value, sort_keys=True)


# ---------------------------------------------------------------------------
# Kind map
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KindSpec:
    coerce: Callable[[FieldSchema, Any], Any]
    display: Callable[[FieldSchema, Any], str]
    # Value used when an optional field is missing from stored settings
    empty: Callable[[FieldSchema], Any]
    # Editor widget name a host UI binds the control to
    widget: str


KIND_SPECS: dict[FieldKind, KindSpec] = {
    FieldKind.TEXT: KindSpec(_coerce_text, _display_plain, lambda f: "", "input"),
    FieldKind.TEXTAREA: KindSpec(_coerce_text, _display_plain, lambda f: "", "textarea"),
    FieldKind.NUMBER: KindSpec(_coerce_number, _display_number, lambda f: 0, "number"),
    FieldKind.RANGE: KindSpec(_coerce_range, _display_number, lambda f: f.min if f.min is not None else 0, "slider"),
    FieldKind.COLOR: KindSpec(_coerce_color, _display_plain, lambda f: "", "color"),
    FieldKind.TOGGLE: KindSpec(_coerce_toggle, _display_toggle, lambda f: False, "switch"),
    FieldKind.SELECT: KindSpec(_coerce_select, _display_plain, lambda f: f.options[0] if f.options else "", "select"),
    FieldKind.IMAGE: KindSpec(_coerce_image, _display_plain, lambda f: "", "media"),
    FieldKind.DATE: KindSpec(_coerce_date, _display_date, lambda f: "", "date"),
    FieldKind.LINKS: KindSpec(_coerce_links, _display_links, lambda f: [], "link_rows"),
    FieldKind.PRODUCT_SELECT: KindSpec(_coerce_product_ids, _display_products, lambda f: [], "product_picker"),
    FieldKind.JSON: KindSpec(_coerce_json, _display_json, lambda f: None, "code"),
}


def coerce(f: FieldSchema, value: Any) -> Any:
    """Normalise `value` for field `f`, or raise FieldValueError."""
    return KIND_SPECS[f.kind].coerce(f, value)


def display(f: FieldSchema, value: Any) -> str:
    """Plain-text form of an already-coerced value."""
    return KIND_SPECS[f.kind].display(f, value)


def empty_value(f: FieldSchema) -> Any:
    """Value to use when an optional field is absent from stored settings."""
    return KIND_SPECS[f.kind].empty(f)


def control(f: FieldSchema, value: Any, ai_enabled: bool) -> dict[str, Any]:
    """
    Describe the editor control for one field.

    AI-eligible fields with AI switched on are shown read-only with an AI
    toggle; switching AI off exposes the editable control. The value is the
    same either way.
    """
    spec = KIND_SPECS[f.kind]
    desc: dict[str, Any] = {
        "key": f.key,
        "label": f.label,
        "kind": f.kind.value,
        "widget": spec.widget,
        "value": value,
        "editable": not (f.ai_eligible and ai_enabled),
    }
    if f.kind == FieldKind.RANGE:
        desc["min"] = f.min
        desc["max"] = f.max
        desc["step"] = f.step
    if f.kind == FieldKind.SELECT:
        desc["options"] = list(f.options)
    if f.ai_eligible:
        desc["ai"] = ai_enabled
    return desc


def section_controls(instance: SectionInstance) -> list[dict[str, Any]]:
    """Ordered control descriptors for every field of a section."""
    section_type = get_type(instance.type)
    return [
        control(f, instance.settings.get(f.key, f.default), instance.ai_enabled(f.key))
        for f in section_type.fields
    ]
