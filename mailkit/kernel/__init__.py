"""
Mailkit Kernel: the section composition and rendering engine.

Components:
  registry    : static section type catalog with per-field schemas
  presets     : named settings overlays, grouped by category
  model       : TemplateModel: the ordered section list (single source of truth)
  merge       : seed / AI patch / user edit rules for section settings
  tokens      : {{token}} and {{#if}} substitution
  renderer    : (model, product resolver) -> email HTML + plain text  (pure)
  assembly    : EditorSession, storage protocol, save coalescing, autosave
  generation  : async AI generation with stale-reply detection
"""

from mailkit.kernel.assembly import (
    Autosaver,
    EditorSession,
    MemoryStorage,
    SessionDiscarded,
    TemplateNotFound,
    TemplateStorage,
)
from mailkit.kernel.generation import GenerationError, generate_all, regenerate_section
from mailkit.kernel.merge import apply_ai_patch, apply_user_edit, seed_settings, set_ai_flag
from mailkit.kernel.model import TemplateModel, new_template
from mailkit.kernel.presets import UnknownVariant, list_presets_by_category, resolve_variant
from mailkit.kernel.registry import UnknownSectionType, get_type, list_types
from mailkit.kernel.renderer import render_document, render_email, render_plain_text, render_section
from mailkit.kernel.tokens import TemplateSyntaxError, render_flat_template

__all__ = [
    "get_type",
    "list_types",
    "UnknownSectionType",
    "list_presets_by_category",
    "resolve_variant",
    "UnknownVariant",
    "TemplateModel",
    "new_template",
    "seed_settings",
    "apply_ai_patch",
    "apply_user_edit",
    "set_ai_flag",
    "render_flat_template",
    "TemplateSyntaxError",
    "render_section",
    "render_document",
    "render_plain_text",
    "render_email",
    "EditorSession",
    "TemplateStorage",
    "MemoryStorage",
    "TemplateNotFound",
    "SessionDiscarded",
    "Autosaver",
    "generate_all",
    "regenerate_section",
    "GenerationError",
]
