"""
Mailkit Kernel: Merge Engine

Resolves the effective settings of a section from its layered sources:

    type defaults -> preset overlay        (seed, once, at creation)
    AI patch                               (only fields whose AI flag is on)
    user edit                              (direct, unconditional)

Defaults are a creation-time seed. Nothing here is ever called from the
renderer, so a render can never recompute or reapply them.

The merge engine never throws for patch data: unknown keys are logged and
skipped, bad values are rejected per field with the prior value kept.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from mailkit.kernel.fields import FieldValueError, coerce
from mailkit.kernel.registry import get_type
from mailkit.kernel.types import PatchResult, SectionInstance, SectionType, is_private_key

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Seed
# ---------------------------------------------------------------------------


def seed_settings(section_type: SectionType, overlay: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Initial settings for a new section: defaults, then the preset overlay.
    Overlay keys that are not fields of the type are dropped with a warning.
    """
    settings = section_type.defaults
    for key, value in (overlay or {}).items():
        f = section_type.get_field(key)
        if f is None:
            logger.warning("merge: overlay key %r is not a field of %s, dropped", key, section_type.type)
            continue
        try:
            settings[key] = coerce(f, copy.deepcopy(value))
        except FieldValueError as e:
            logger.warning("merge: overlay value for %s.%s rejected: %s", section_type.type, key, e.message)
    return settings


def default_ai_flags(section_type: SectionType) -> dict[str, bool]:
    return {f.key: True for f in section_type.fields if f.ai_eligible}


# ---------------------------------------------------------------------------
# AI patches
# ---------------------------------------------------------------------------


def ai_request_fields(instance: SectionInstance) -> list[str]:
    """Keys a generator may fill for this section: eligible and switched on, in schema order."""
    section_type = get_type(instance.type)
    return [f.key for f in section_type.fields if f.ai_eligible and instance.ai_enabled(f.key)]


def apply_ai_patch(instance: SectionInstance, patch: dict[str, Any]) -> PatchResult:
    """
    Apply a generated patch to a section in place.

    A field is written only if its AI flag is on (fields that are not
    AI-eligible carry no flag and are written as-is). Pinned fields keep
    their value even when the patch includes them. Re-applying the same
    patch leaves the settings unchanged.
    """
    result = PatchResult()
    section_type = get_type(instance.type)

    for key, value in patch.items():
        f = None if is_private_key(key) else section_type.get_field(key)
        if f is None:
            logger.warning("merge: patch key %r unknown for %s section %s, ignored", key, instance.type, instance.id)
            result.ignored.append(key)
            continue
        if f.ai_eligible and not instance.ai_enabled(key):
            result.pinned.append(key)
            continue
        try:
            instance.settings[key] = coerce(f, copy.deepcopy(value))
        except FieldValueError as e:
            logger.warning("merge: patch value for %s rejected on section %s: %s", key, instance.id, e.message)
            result.rejected[key] = e.message
            continue
        result.applied.append(key)

    return result


# ---------------------------------------------------------------------------
# User edits
# ---------------------------------------------------------------------------


def apply_user_edit(instance: SectionInstance, key: str, value: Any) -> bool:
    """
    Direct write of a user-entered value. Returns False for an unknown key.

    Private keys (leading underscore) are stored raw. Field values are
    coerced; a value that does not fit raises FieldValueError so the
    editor can show it next to the control.
    """
    if is_private_key(key):
        instance.settings[key] = copy.deepcopy(value)
        return True

    f = get_type(instance.type).get_field(key)
    if f is None:
        logger.warning("merge: edit of unknown field %r on %s section %s ignored", key, instance.type, instance.id)
        return False

    instance.settings[key] = coerce(f, copy.deepcopy(value))
    return True


def set_ai_flag(instance: SectionInstance, key: str, enabled: bool) -> bool:
    """
    Switch a field between AI-populated and manual. Never touches the value.
    Returns False (and logs) for fields that are not AI-eligible.
    """
    f = get_type(instance.type).get_field(key)
    if f is None or not f.ai_eligible:
        logger.warning("merge: %r on %s section %s has no AI flag", key, instance.type, instance.id)
        return False
    instance.ai_flags[key] = bool(enabled)
    return True
