"""
Mailkit Kernel: Template Model

The ordered list of section instances that is the single source of truth
for one email layout. Order changes only through the explicit operations
below (add, remove, move, duplicate, reconcile_order). Rendering and
preview read the model and never write to it.

All operations are synchronous.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

from mailkit.kernel import merge
from mailkit.kernel.presets import get_variant
from mailkit.kernel.registry import get_type, has_type
from mailkit.kernel.types import SectionInstance, new_id, now_iso

logger = logging.getLogger(__name__)

DEFAULT_STRUCTURE = ["header", "hero", "products", "text", "cta", "footer"]


@dataclass
class TemplateModel:
    sections: list[SectionInstance] = field(default_factory=list)
    name: str = "Untitled template"
    id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    # Bumped on every mutation. Lets a saver tell whether the model changed
    # after the snapshot it persisted.
    revision: int = field(default=0, compare=False)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_section(self, section_id: str) -> SectionInstance | None:
        for s in self.sections:
            if s.id == section_id:
                return s
        return None

    def index_of(self, section_id: str) -> int:
        """Position of a section, or -1."""
        for i, s in enumerate(self.sections):
            if s.id == section_id:
                return i
        return -1

    @property
    def section_ids(self) -> list[str]:
        return [s.id for s in self.sections]

    def touch(self) -> None:
        self.revision += 1

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def add_section(
        self,
        section_type: str,
        variant_id: str | None = None,
        index: int | None = None,
    ) -> SectionInstance:
        """
        Create a section seeded from type defaults (plus an optional preset
        overlay) and insert it. Appends unless `index` is given, which is
        clamped to the valid range.

        Raises UnknownSectionType, UnknownVariant, or ValueError when the
        variant belongs to a different type.
        """
        st = get_type(section_type)
        overlay = None
        if variant_id:
            variant = get_variant(variant_id)
            if variant["type"] != st.type:
                raise ValueError(f"Variant {variant_id!r} is for {variant['type']!r}, not {st.type!r}")
            overlay = variant["settings"]

        instance = SectionInstance(
            id=new_id(),
            type=st.type,
            settings=merge.seed_settings(st, overlay),
            ai_flags=merge.default_ai_flags(st),
        )
        if index is None:
            self.sections.append(instance)
        else:
            self.sections.insert(_clamp(index, 0, len(self.sections)), instance)
        self.touch()
        return instance

    def remove_section(self, section_id: str) -> bool:
        """Remove by id. Returns whether a section was removed."""
        i = self.index_of(section_id)
        if i < 0:
            return False
        del self.sections[i]
        self.touch()
        return True

    def move_section(self, section_id: str, new_index: int) -> bool:
        """Move a section to `new_index` (clamped). Others keep their relative order."""
        i = self.index_of(section_id)
        if i < 0:
            return False
        section = self.sections.pop(i)
        self.sections.insert(_clamp(new_index, 0, len(self.sections)), section)
        if i != self.index_of(section_id):
            self.touch()
        return True

    def duplicate_section(self, section_id: str) -> SectionInstance | None:
        """Deep-copy a section under a new id, inserted right after the source."""
        i = self.index_of(section_id)
        if i < 0:
            return None
        source = self.sections[i]
        clone = SectionInstance(
            id=new_id(),
            type=source.type,
            settings=copy.deepcopy(source.settings),
            ai_flags=dict(source.ai_flags),
        )
        self.sections.insert(i + 1, clone)
        self.touch()
        return clone

    def reconcile_order(self, explicit_order: list[str]) -> list[str]:
        """
        Reorder from an external signal such as a drag-and-drop result.

        Ids not present in the model are ignored. Sections the signal does
        not mention keep their relative order and follow the mentioned ones.
        Returns the resulting order.
        """
        known = {s.id: s for s in self.sections}
        seen: set[str] = set()
        ordered: list[SectionInstance] = []
        for sid in explicit_order:
            if sid not in known:
                logger.warning("model: reconcile_order ignoring unknown section id %r", sid)
                continue
            if sid in seen:
                continue
            seen.add(sid)
            ordered.append(known[sid])
        ordered.extend(s for s in self.sections if s.id not in seen)

        if [s.id for s in ordered] != self.section_ids:
            self.sections = ordered
            self.touch()
        return self.section_ids

    def add_default_structure(self) -> list[SectionInstance]:
        """Seed an empty template with a sensible starting layout."""
        if self.sections:
            return []
        return [self.add_section(t) for t in DEFAULT_STRUCTURE]

    def apply_layout(self, types: list[str]) -> list[SectionInstance]:
        """
        Append sections for a suggested list of types. Unknown types are
        dropped; header is forced first and footer last.
        """
        return [self.add_section(t) for t in normalize_layout(types)]

    # ------------------------------------------------------------------
    # Field edits
    # ------------------------------------------------------------------

    def edit_field(self, section_id: str, key: str, value: Any) -> bool:
        """User edit of one field. Returns False if the section or key is unknown."""
        section = self.get_section(section_id)
        if section is None:
            logger.warning("model: edit for missing section %s ignored", section_id)
            return False
        if not has_type(section.type):
            logger.warning("model: edit on section %s of unknown type %r ignored", section_id, section.type)
            return False
        changed = merge.apply_user_edit(section, key, value)
        if changed:
            self.touch()
        return changed

    def set_ai_flag(self, section_id: str, key: str, enabled: bool) -> bool:
        section = self.get_section(section_id)
        if section is None or not has_type(section.type):
            return False
        changed = merge.set_ai_flag(section, key, enabled)
        if changed:
            self.touch()
        return changed

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "sections": [s.to_dict() for s in self.sections],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TemplateModel:
        """
        Rebuild a model from its serialized form. Settings are taken as
        stored: no defaults are filled in and unknown types are kept.
        """
        return cls(
            sections=[SectionInstance.from_dict(s) for s in d.get("sections") or []],
            name=d.get("name") or "Untitled template",
            id=str(d["id"]) if d.get("id") else None,
            created_at=d.get("created_at"),
            updated_at=d.get("updated_at"),
        )

    def clone(self) -> TemplateModel:
        return TemplateModel.from_dict(copy.deepcopy(self.to_dict()))


def new_template(name: str = "Untitled template") -> TemplateModel:
    return TemplateModel(name=name, created_at=now_iso())


def normalize_layout(types: list[str]) -> list[str]:
    layout = []
    for t in types:
        if not isinstance(t, str) or not has_type(t):
            logger.warning("model: layout type %r is not registered, dropped", t)
            continue
        layout.append(t)
    if not layout or layout[0] != "header":
        layout.insert(0, "header")
    if layout[-1] != "footer":
        layout.append("footer")
    return layout


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))
