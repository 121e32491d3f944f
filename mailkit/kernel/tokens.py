"""
Mailkit Kernel: Token / Conditional Substitution

Grammar (single level, no nesting):

    {{identifier}}                     token, replaced by context[identifier]
    {{#if identifier}} ... {{/if}}
    {{#if identifier}} ... {{else}} ... {{/if}}

identifier is [A-Za-z_][A-Za-z0-9_]*. Anything else between double braces
that is not a block tag (spaces, dots: the delivery provider's own merge
tags such as {{ unsubscribe }} or {{ contact.FIRSTNAME }}) is passed through
untouched. Block forms this engine does not support ({{#each}}, a nested
{{#if}}, a stray {{/if}}) are rejected at parse time.

Substitution is purely textual, so tokens inside HTML attribute values are
replaced like any other. Substituted values are never re-scanned, and any
engine syntax inside a value is neutralised, so a second pass with the same
context changes nothing.
"""

from __future__ import annotations

import datetime
import functools
import re
from html import escape as _html_escape
from typing import Any

TAG_PATTERN = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
IDENT_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
IF_PATTERN = re.compile(r"^#if\s+(\S+)$")

# "{{" that a later pass could read as one of our tags
_ACTIVE_OPEN = re.compile(r"\{\{(?=[A-Za-z_#/])")

# Brevo's unsubscribe merge tag
DEFAULT_UNSUBSCRIBE = "{{ unsubscribe }}"

STANDARD_TOKENS = (
    "campaign_headline",
    "campaign_description",
    "campaign_image",
    "coupon_code",
    "coupon_text",
    "products_block",
    "store_name",
    "store_url",
    "logo_url",
    "unsubscribe_url",
    "current_year",
    "subject",
    "preview_text",
)

# Trusted pre-rendered HTML fragments
RAW_TOKENS = frozenset({"products_block"})


class TemplateSyntaxError(ValueError):
    """Malformed or unsupported block syntax in a template string."""

    def __init__(self, message: str, offset: int, block: str):
        super().__init__(f"{message} at offset {offset}: {block!r}")
        self.message = message
        self.offset = offset
        self.block = block


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

# Nodes are tuples so compiled templates can be cached and shared:
#   ("text", literal)
#   ("var", name)
#   ("if", name, then_nodes, else_nodes)


@functools.lru_cache(maxsize=512)
def compile_template(template: str) -> tuple[tuple, ...]:
    """Parse a template into nodes. Raises TemplateSyntaxError."""
    nodes: list[tuple] = []
    block: dict[str, Any] | None = None
    pos = 0

    def emit(node: tuple) -> None:
        if block is None:
            nodes.append(node)
        elif block["in_else"]:
            block["else"].append(node)
        else:
            block["then"].append(node)

    for m in TAG_PATTERN.finditer(template):
        if m.start() > pos:
            emit(("text", template[pos : m.start()]))
        pos = m.end()
        inner = m.group(1)
        tag = m.group(0)

        if inner == "else":
            if block is None:
                raise TemplateSyntaxError("{{else}} outside an {{#if}} block", m.start(), tag)
            if block["in_else"]:
                raise TemplateSyntaxError("Duplicate {{else}} in {{#if}} block", m.start(), tag)
            block["in_else"] = True
            continue

        if inner.startswith("#if"):
            if_match = IF_PATTERN.match(inner)
            if not if_match or not IDENT_PATTERN.match(if_match.group(1)):
                raise TemplateSyntaxError("Malformed {{#if}} condition", m.start(), tag)
            if block is not None:
                raise TemplateSyntaxError("Nested {{#if}} blocks are not supported", m.start(), tag)
            block = {"name": if_match.group(1), "then": [], "else": [], "in_else": False, "start": m.start()}
            continue

        if IDENT_PATTERN.match(inner):
            emit(("var", inner))
            continue

        if inner == "/if":
            if block is None:
                raise TemplateSyntaxError("{{/if}} without a matching {{#if}}", m.start(), tag)
            nodes.append(("if", block["name"], tuple(block["then"]), tuple(block["else"])))
            block = None
            continue

        if inner.startswith(("#", "/", "^")):
            raise TemplateSyntaxError("Unsupported block tag", m.start(), tag)

        # Foreign merge tag: keep verbatim
        emit(("text", tag))

    if block is not None:
        start = block["start"]
        raise TemplateSyntaxError("Unclosed {{#if}} block", start, template[start : start + 40])

    if pos < len(template):
        nodes.append(("text", template[pos:]))
    return tuple(nodes)


def validate(template: str) -> None:
    """Raise TemplateSyntaxError if `template` does not parse."""
    compile_template(template)


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


def is_truthy(value: Any) -> bool:
    """
    None, "", "0", "false", 0, False and empty containers are false.
    Everything else is true.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip()
        return text != "" and text != "0" and text.lower() != "false"
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) > 0
    return True


def stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ", ".join(stringify(v) for v in value)
    return str(value)


def _neutralize(text: str) -> str:
    text = _ACTIVE_OPEN.sub("&#123;&#123;", text)
    if text.endswith("{"):
        text = text[:-1] + "&#123;"
    return text


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render(
    template: str,
    context: dict[str, Any],
    escape: bool = True,
    raw_keys: frozenset[str] | set[str] = frozenset(),
) -> str:
    """
    Substitute tokens and evaluate conditionals against `context`.

    Unknown tokens render as "". With escape=True values are HTML-escaped
    (quotes included, so attribute values are safe) and any engine syntax
    inside them is neutralised. `raw_keys` are inserted without escaping.
    With escape=False (plain-text output) values are inserted verbatim.
    """
    out: list[str] = []
    _render_nodes(compile_template(template), context, escape, raw_keys, out)
    return "".join(out)


def _render_nodes(
    nodes: tuple[tuple, ...],
    context: dict[str, Any],
    escape: bool,
    raw_keys: frozenset[str] | set[str],
    out: list[str],
) -> None:
    for node in nodes:
        kind = node[0]
        if kind == "text":
            out.append(node[1])
        elif kind == "var":
            name = node[1]
            text = stringify(context.get(name))
            if escape:
                if name not in raw_keys:
                    text = _html_escape(text, quote=True)
                text = _neutralize(text)
            out.append(text)
        else:
            branch = node[2] if is_truthy(context.get(node[1])) else node[3]
            _render_nodes(branch, context, escape, raw_keys, out)


def build_token_map(context: dict[str, Any]) -> dict[str, Any]:
    """
    The standard campaign token map over a caller context. Known tokens get
    defaults; any extra context keys are kept as-is.
    """
    tokens: dict[str, Any] = {name: "" for name in STANDARD_TOKENS}
    tokens["unsubscribe_url"] = DEFAULT_UNSUBSCRIBE
    tokens["current_year"] = str(datetime.date.today().year)
    for key, value in context.items():
        if value is not None:
            tokens[key] = value
    return tokens


def render_flat_template(template: str, context: dict[str, Any]) -> str:
    """Render a legacy flat HTML template against the standard token map."""
    return render(template, build_token_map(context), escape=True, raw_keys=RAW_TOKENS)
