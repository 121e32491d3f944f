"""
Composer routes: preview rendering, legacy flat templates, AI generation
and layout suggestion.

The client owns the model; each request carries the template and gets the
result back. Nothing here is persisted.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from mailkit.kernel.assembly import EditorSession
from mailkit.kernel.generation import GenerationError, SectionGenerator, generate_all, regenerate_section
from mailkit.kernel.model import TemplateModel
from mailkit.kernel.products import ProductResolver, resolve_products
from mailkit.kernel.renderer import render_email
from mailkit.kernel.tokens import TemplateSyntaxError, render_flat_template
from mailkit.kernel.types import GenerationContext, GenerationReport, RenderOptions
from studio.config import settings
from studio.deps import get_generator, get_layout_generator, get_resolver
from studio.models.template import (
    FlatRenderRequest,
    FlatRenderResponse,
    GenerateRequest,
    GenerateResponse,
    LayoutRequest,
    LayoutResponse,
    PreviewRequest,
    PreviewResponse,
)
from studio.services.section_ai import SectionCopyGenerator
from studio.services.woocommerce import referenced_product_ids

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["composer"])


async def _prefetch(resolver: ProductResolver, model: TemplateModel) -> list[int]:
    ids = referenced_product_ids(model)
    prefetch = getattr(resolver, "prefetch", None)
    if ids and prefetch is not None:
        await prefetch(ids)
    return ids


@router.post("/preview", status_code=200)
async def preview(req: PreviewRequest, resolver: ProductResolver = Depends(get_resolver)) -> PreviewResponse:
    """Render the template as sent. Section order is taken as-is."""
    model = req.template.to_model()
    await _prefetch(resolver, model)
    context = {**settings.store_context, **req.context}
    email = render_email(
        model,
        resolver,
        context,
        RenderOptions(subject=req.subject, preview_text=req.preview_text),
    )
    return PreviewResponse(**email.to_dict())


@router.post("/render-flat", status_code=200)
async def render_flat(req: FlatRenderRequest) -> FlatRenderResponse:
    """Legacy flat-template path: token substitution over a whole HTML body."""
    context = {**settings.store_context, **req.context}
    try:
        html = render_flat_template(req.template, context)
    except TemplateSyntaxError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None
    return FlatRenderResponse(html=html)


@router.post("/generate", status_code=200)
async def generate(
    req: GenerateRequest,
    generator: SectionGenerator = Depends(get_generator),
    resolver: ProductResolver = Depends(get_resolver),
) -> GenerateResponse:
    """
    Fill AI-enabled fields, for one section (section_id) or all of them.
    Returns the patched template and one outcome per section.
    """
    session = EditorSession(req.template.to_model())
    if req.section_id is not None and session.model.get_section(req.section_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found.")

    context = req.context.to_context()
    context.store_context = {**settings.store_context, **context.store_context}
    ids = await _prefetch(resolver, session.model)
    context.products = resolve_products(resolver, ids)

    if req.section_id is not None:
        outcome = await regenerate_section(session, req.section_id, generator, context)
        report = GenerationReport(outcomes=[outcome])
    else:
        report = await generate_all(session, generator, context)

    if report.failed:
        logger.info("generate: %d of %d sections failed", len(report.failed), len(report.outcomes))
    return GenerateResponse(template=session.model.to_dict(), **report.to_dict())


@router.post("/layout", status_code=200)
async def layout(
    req: LayoutRequest,
    generator: SectionCopyGenerator = Depends(get_layout_generator),
) -> LayoutResponse:
    """Suggested section types for a brief, header first and footer last."""
    context = GenerationContext(tone=req.tone, language=req.language, prompt=req.prompt)
    try:
        types = await generator.suggest_layout(req.prompt, context)
    except GenerationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from None
    return LayoutResponse(types=types)
