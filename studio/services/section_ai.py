"""
AI copywriting for email sections.

SectionCopyGenerator implements the kernel's SectionGenerator protocol on
top of the configured AI provider. It only ever asks for the fields it is
given (the AI-eligible, AI-enabled ones) and returns a patch; merging is
the kernel's job.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from mailkit.kernel.generation import GenerationError
from mailkit.kernel.model import normalize_layout
from mailkit.kernel.registry import SECTION_TYPES
from mailkit.kernel.types import FieldKind, GenerationContext, GenerationReply, SectionType
from studio.config import settings as app_settings
from studio.services.ai_provider import PROVIDER_ERRORS, AIProvider, ai_provider

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")

SYSTEM_PROMPT = """You are an expert email marketing copywriter for an online store.
Write in a {tone} tone, in {language}. Prices are in {currency}.
{store_line}
Return ONLY a single JSON object. No markdown, no commentary."""

SECTION_PROMPT = """Campaign theme: {theme}
{prompt_line}{products_line}
Write copy for the "{label}" section of a marketing email.
Current values, for reference:
{current}

Return a JSON object with exactly these keys:
{fields}"""

LAYOUT_PROMPT = """Suggest the section layout for a marketing email.
Brief: {prompt}
Tone: {tone}. Language: {language}.

Available section types:
{types}

Return ONLY a JSON array of section type names, in order, for example
["header", "hero", "products", "cta", "footer"]."""

# Guidance per field, keyed by "<type>.<key>"; falls back to the field label
FIELD_HINTS: dict[str, str] = {
    "hero.headline": "a punchy headline, at most 8 words",
    "hero.subtext": "one or two supporting sentences",
    "heading.text": "a short section heading",
    "heading.subtext": "a one-line subheading",
    "text.heading": "a short heading for the text block",
    "text.body": "one or two short paragraphs separated by a blank line",
    "list.heading": "a short heading for the list",
    "list.items": "a JSON array of 3 to 5 short strings",
    "banner.heading": "a short attention-grabbing line",
    "banner.subtext": "one sentence of supporting detail",
    "products.heading": "a heading introducing the featured products",
    "coupon.headline": "a short headline for the offer",
    "coupon.discount_text": "one line describing the discount",
    "cta.heading": "a short call-to-action heading",
    "cta.subtext": "one sentence encouraging the click",
    "footer.footer_text": "one sentence explaining why the reader receives this email",
    "footer.social_link_text": "one sentence inviting readers to follow the store on social media",
}

_TEXT_KINDS = {FieldKind.TEXT, FieldKind.TEXTAREA}


class SectionCopyGenerator:
    """Generates section copy with an LLM."""

    def __init__(self, provider: AIProvider | None = None, currency_symbol: str | None = None):
        self.provider = provider or ai_provider
        self.currency_symbol = currency_symbol or app_settings.CURRENCY_SYMBOL

    async def generate(
        self,
        section_type: SectionType,
        settings: dict[str, Any],
        fields: list[str],
        context: GenerationContext,
    ) -> GenerationReply:
        system = self.system_prompt(context)
        prompt = self.section_prompt(section_type, settings, fields, context)
        try:
            content = await self.provider.complete(system, prompt)
        except PROVIDER_ERRORS as e:
            raise GenerationError(f"AI provider error: {e}") from e

        data = extract_json_object(content)
        if data is None:
            logger.warning("section_ai: unparseable reply for %s: %r", section_type.type, content[:200])
            raise GenerationError("AI reply did not contain a JSON object")
        return parse_reply(section_type, fields, data)

    def system_prompt(self, context: GenerationContext) -> str:
        store_name = context.store_context.get("store_name") or app_settings.STORE_NAME
        return SYSTEM_PROMPT.format(
            tone=context.tone,
            language=context.language,
            currency=self.currency_symbol,
            store_line=f"The store is called {store_name}." if store_name else "",
        )

    def section_prompt(
        self,
        section_type: SectionType,
        settings: dict[str, Any],
        fields: list[str],
        context: GenerationContext,
    ) -> str:
        current = {k: settings.get(k) for k in fields}
        field_lines = []
        for key in fields:
            f = section_type.get_field(key)
            hint = FIELD_HINTS.get(f"{section_type.type}.{key}") or (f.label if f else key)
            field_lines.append(f'- "{key}": {hint}')
        products_line = ""
        if context.products:
            names = ", ".join(f"{p.name} ({p.price_display})" if p.price_display else p.name for p in context.products)
            products_line = f"Featured products: {names}\n"
        return SECTION_PROMPT.format(
            theme=context.theme or "general promotion",
            prompt_line=f"Brief: {context.prompt}\n" if context.prompt else "",
            products_line=products_line,
            label=section_type.label,
            current=json.dumps(current, ensure_ascii=False, indent=2),
            fields="\n".join(field_lines),
        )

    async def suggest_layout(self, prompt: str, context: GenerationContext) -> list[str]:
        """
        Ask for an ordered list of section types. The answer goes through the
        same rules as TemplateModel.apply_layout (unknown types dropped,
        header first, footer last).
        """
        types = "\n".join(f"- {t.type}: {t.label}" for t in SECTION_TYPES)
        user = LAYOUT_PROMPT.format(prompt=prompt, tone=context.tone, language=context.language, types=types)
        try:
            content = await self.provider.complete(self.system_prompt(context), user, max_tokens=256)
        except PROVIDER_ERRORS as e:
            raise GenerationError(f"AI provider error: {e}") from e

        match = _JSON_ARRAY.search(content)
        suggested: Any = None
        if match:
            try:
                suggested = json.loads(match.group(0))
            except json.JSONDecodeError:
                suggested = None
        if not isinstance(suggested, list):
            raise GenerationError("AI reply did not contain a JSON array of section types")
        return normalize_layout(suggested)


def extract_json_object(content: str) -> dict[str, Any] | None:
    """The first {...} span of a reply, parsed. None when absent or invalid."""
    match = _JSON_OBJECT.search(content or "")
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def parse_reply(section_type: SectionType, fields: list[str], data: dict[str, Any]) -> GenerationReply:
    """
    Turn a parsed reply into a patch. Keys that were not requested are
    dropped; values of the wrong shape become field errors.
    """
    patch: dict[str, Any] = {}
    field_errors: dict[str, str] = {}
    for key in fields:
        if key not in data:
            field_errors[key] = "not returned"
            continue
        value = data[key]
        f = section_type.get_field(key)
        if f is None:
            continue
        if f.kind in _TEXT_KINDS:
            if not isinstance(value, str):
                field_errors[key] = f"expected text, got {type(value).__name__}"
                continue
            patch[key] = value.strip()
        elif f.kind == FieldKind.JSON:
            items = _list_items(value)
            if items is None:
                field_errors[key] = "expected a list of strings"
                continue
            patch[key] = items
        else:
            patch[key] = value

    dropped = sorted(set(data) - set(fields))
    if dropped:
        logger.debug("section_ai: dropped unrequested keys %s for %s", dropped, section_type.type)
    return GenerationReply(patch=patch, field_errors=field_errors)


def _list_items(value: Any) -> list[dict[str, str]] | None:
    if not isinstance(value, list) or not value:
        return None
    items = []
    for item in value:
        if isinstance(item, str):
            items.append({"text": item.strip()})
        elif isinstance(item, dict) and isinstance(item.get("text"), str):
            items.append({"text": item["text"].strip()})
        else:
            return None
    return items
