"""Template CRUD routes: list, save, load, delete."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status

from mailkit.kernel.assembly import TemplateNotFound, TemplateStorage
from studio.deps import get_storage
from studio.models.template import SaveTemplateResponse, TemplatePayload, TemplateSummaryResponse

router = APIRouter(prefix="/api/templates", tags=["templates"])


@router.get("", status_code=200)
async def list_templates(storage: TemplateStorage = Depends(get_storage)) -> list[TemplateSummaryResponse]:
    """All saved templates, most recently updated first."""
    summaries = await storage.list()
    return [TemplateSummaryResponse(**s.to_dict()) for s in summaries]


@router.post("", status_code=201)
async def save_template(
    req: TemplatePayload,
    storage: TemplateStorage = Depends(get_storage),
) -> SaveTemplateResponse:
    """Create or overwrite a template. Last write wins."""
    if req.id and not _is_uuid(req.id):
        raise HTTPException(status_code=422, detail="Template id must be a UUID.")
    template_id = await storage.save(req.to_model())
    return SaveTemplateResponse(id=template_id)


@router.get("/{template_id}", status_code=200)
async def get_template(template_id: str, storage: TemplateStorage = Depends(get_storage)) -> dict[str, Any]:
    try:
        model = await storage.load(template_id)
    except TemplateNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found.") from None
    return model.to_dict()


@router.delete("/{template_id}", status_code=204)
async def delete_template(template_id: str, storage: TemplateStorage = Depends(get_storage)) -> Response:
    try:
        await storage.delete(template_id)
    except TemplateNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found.") from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True
