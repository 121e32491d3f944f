"""
Mailkit Kernel: Shared Types

Data classes used across the registry, merge engine, renderer and assembly.
These are the contracts that bind the kernel together.

- FieldKind / FieldSchema / SectionType describe the static catalog
- SectionInstance is one placed section (id, type, settings, ai_flags)
- PatchResult, SectionOutcome and GenerationReport report merge/generation work
- RenderOptions / RenderedEmail carry document metadata to the delivery side
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

# Settings keys starting with this prefix are internal (e.g. cached picker data)
PRIVATE_PREFIX = "_"

MAX_WIDTH = 600


# ---------------------------------------------------------------------------
# Field schema
# ---------------------------------------------------------------------------


class FieldKind(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    RANGE = "range"
    COLOR = "color"
    TOGGLE = "toggle"
    SELECT = "select"
    IMAGE = "image"
    DATE = "date"
    LINKS = "links"
    PRODUCT_SELECT = "product_select"
    JSON = "json"


@dataclass(frozen=True)
class FieldSchema:
    """One editable field of a section type."""

    key: str
    label: str
    kind: FieldKind
    default: Any = ""
    ai_eligible: bool = False
    required: bool = False
    options: tuple[str, ...] = ()
    min: float | None = None
    max: float | None = None
    step: float | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "key": self.key,
            "label": self.label,
            "kind": self.kind.value,
            "default": copy.deepcopy(self.default),
            "ai_eligible": self.ai_eligible,
            "required": self.required,
        }
        if self.options:
            d["options"] = list(self.options)
        if self.kind == FieldKind.RANGE:
            d["min"] = self.min
            d["max"] = self.max
            d["step"] = self.step
        return d


@dataclass(frozen=True)
class SectionType:
    """
    A registry-defined section type. Immutable at runtime.

    `defaults` is derived from the field list so the two can never drift.
    """

    type: str
    label: str
    icon: str
    category: str
    fields: tuple[FieldSchema, ...]

    @property
    def has_ai(self) -> bool:
        return any(f.ai_eligible for f in self.fields)

    @property
    def defaults(self) -> dict[str, Any]:
        return {f.key: copy.deepcopy(f.default) for f in self.fields}

    @property
    def field_keys(self) -> list[str]:
        return [f.key for f in self.fields]

    def get_field(self, key: str) -> FieldSchema | None:
        for f in self.fields:
            if f.key == key:
                return f
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "label": self.label,
            "icon": self.icon,
            "category": self.category,
            "has_ai": self.has_ai,
            "fields": [f.to_dict() for f in self.fields],
            "defaults": self.defaults,
        }


def is_private_key(key: str) -> bool:
    return key.startswith(PRIVATE_PREFIX)


# ---------------------------------------------------------------------------
# Section instance
# ---------------------------------------------------------------------------


@dataclass
class SectionInstance:
    """
    One section placed in a template.

    `id` is assigned at creation and never reassigned. `ai_flags` is kept
    apart from `settings` so toggling a flag never touches a value.
    """

    id: str
    type: str
    settings: dict[str, Any] = field(default_factory=dict)
    ai_flags: dict[str, bool] = field(default_factory=dict)

    def ai_enabled(self, key: str) -> bool:
        return self.ai_flags.get(key, True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "settings": copy.deepcopy(self.settings),
            "ai_flags": dict(self.ai_flags),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SectionInstance:
        return cls(
            id=str(d["id"]),
            type=d["type"],
            settings=copy.deepcopy(d.get("settings") or {}),
            ai_flags={k: bool(v) for k, v in (d.get("ai_flags") or {}).items()},
        )


# ---------------------------------------------------------------------------
# Collaborator data
# ---------------------------------------------------------------------------


@dataclass
class Product:
    """Display data for one catalog product, as returned by a resolver."""

    id: int
    name: str
    image_url: str = ""
    price_display: str = ""
    url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "image_url": self.image_url,
            "price_display": self.price_display,
            "url": self.url,
        }


@dataclass
class TemplateSummary:
    id: str
    name: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "updated_at": self.updated_at}


@dataclass
class GenerationContext:
    """Campaign-level inputs handed to a section generator."""

    theme: str = ""
    tone: str = "Professional"
    language: str = "English"
    prompt: str = ""
    store_context: dict[str, Any] = field(default_factory=dict)
    products: list[Product] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "theme": self.theme,
            "tone": self.tone,
            "language": self.language,
            "prompt": self.prompt,
            "store_context": dict(self.store_context),
            "products": [p.to_dict() for p in self.products],
        }


@dataclass
class GenerationReply:
    """
    What a generator returns for one section.
    `field_errors` lists fields it could not produce; those keep prior values.
    """

    patch: dict[str, Any] = field(default_factory=dict)
    field_errors: dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class Warning:
    """A non-fatal issue encountered while merging or rendering."""

    code: str
    message: str
    details: dict[str, Any] | None = None


@dataclass
class PatchResult:
    """
    Outcome of applying one AI patch to one section.
    The merge engine never throws for patch data, it reports here instead.
    """

    applied: list[str] = field(default_factory=list)
    pinned: list[str] = field(default_factory=list)
    ignored: list[str] = field(default_factory=list)
    rejected: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.rejected

    def to_dict(self) -> dict[str, Any]:
        return {
            "applied": list(self.applied),
            "pinned": list(self.pinned),
            "ignored": list(self.ignored),
            "rejected": dict(self.rejected),
            "ok": self.ok,
        }


# Outcome statuses for one section of a generation run
APPLIED = "applied"
FAILED = "failed"
DISCARDED = "discarded"
SKIPPED = "skipped"


@dataclass
class SectionOutcome:
    section_id: str
    status: str
    result: PatchResult | None = None
    error: str | None = None
    field_errors: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == APPLIED and not self.field_errors and (self.result is None or self.result.ok)

    def to_dict(self) -> dict[str, Any]:
        return {
            "section_id": self.section_id,
            "status": self.status,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
            "field_errors": dict(self.field_errors),
        }


@dataclass
class GenerationReport:
    """All outcomes of one generation call, so hosts can decide refund policy."""

    outcomes: list[SectionOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[str]:
        return [o.section_id for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[str]:
        return [o.section_id for o in self.outcomes if o.status == FAILED or (o.status == APPLIED and not o.succeeded)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcomes": [o.to_dict() for o in self.outcomes],
            "succeeded": self.succeeded,
            "failed": self.failed,
        }


@dataclass
class RenderOptions:
    """Document-level metadata for rendering."""

    subject: str = ""
    preview_text: str = ""
    max_width: int = MAX_WIDTH


@dataclass
class RenderedEmail:
    """Final output handed to the delivery collaborator."""

    html: str
    text: str
    subject: str = ""
    preview_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "html": self.html,
            "text": self.text,
            "subject": self.subject,
            "preview_text": self.preview_text,
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def new_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    return datetime.now(UTC).isoformat()
