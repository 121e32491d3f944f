"""Section palette routes: registry types, presets, new section instances."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, status

from mailkit.kernel.model import TemplateModel
from mailkit.kernel.presets import UnknownVariant, list_presets_by_category
from mailkit.kernel.registry import UnknownSectionType, get_type, list_types
from studio.models.template import NewSectionRequest

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/section-types", status_code=200)
async def section_types() -> list[dict[str, Any]]:
    """The section palette, grouped by category."""
    return [
        {"category": g["category"], "label": g["label"], "types": [t.to_dict() for t in g["types"]]}
        for g in list_types()
    ]


@router.get("/section-types/{section_type}", status_code=200)
async def section_type(section_type: str) -> dict[str, Any]:
    try:
        return get_type(section_type).to_dict()
    except UnknownSectionType:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section type not found.") from None


@router.get("/presets", status_code=200)
async def presets() -> list[dict[str, Any]]:
    return list_presets_by_category()


@router.post("/sections/new", status_code=201)
async def new_section(req: NewSectionRequest) -> dict[str, Any]:
    """
    A section instance seeded from type defaults and the optional preset.
    The client inserts it into its own model.
    """
    scratch = TemplateModel()
    try:
        instance = scratch.add_section(req.type, req.variant_id)
    except UnknownSectionType:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section type not found.") from None
    except UnknownVariant:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Preset not found.") from None
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None
    return instance.to_dict()
