"""Request and response models for the template composer API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from mailkit.kernel.model import TemplateModel
from mailkit.kernel.types import GenerationContext


class SectionPayload(BaseModel):
    """One section as the editor client sends it."""

    model_config = {"extra": "forbid"}

    id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    settings: dict[str, Any] = Field(default_factory=dict)
    ai_flags: dict[str, bool] = Field(default_factory=dict)


class TemplatePayload(BaseModel):
    """A whole template, in the editor's serialized form."""

    model_config = {"extra": "forbid"}

    id: str | None = None
    name: str = Field(default="Untitled template", max_length=200)
    sections: list[SectionPayload] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None

    def to_model(self) -> TemplateModel:
        return TemplateModel.from_dict(self.model_dump())


class SaveTemplateResponse(BaseModel):
    id: str


class TemplateSummaryResponse(BaseModel):
    id: str
    name: str
    updated_at: str


class PreviewRequest(BaseModel):
    """What the client sends to POST /api/preview."""

    model_config = {"extra": "forbid"}

    template: TemplatePayload
    context: dict[str, Any] = Field(default_factory=dict)
    subject: str = ""
    preview_text: str = ""


class PreviewResponse(BaseModel):
    html: str
    text: str
    subject: str = ""
    preview_text: str = ""


class NewSectionRequest(BaseModel):
    """What the client sends to POST /api/sections/new."""

    model_config = {"extra": "forbid"}

    type: str = Field(min_length=1)
    variant_id: str | None = None


class FlatRenderRequest(BaseModel):
    """A legacy flat template plus its token context."""

    model_config = {"extra": "forbid"}

    template: str
    context: dict[str, Any] = Field(default_factory=dict)


class FlatRenderResponse(BaseModel):
    html: str


class GenerationContextPayload(BaseModel):
    model_config = {"extra": "forbid"}

    theme: str = ""
    tone: str = "Professional"
    language: str = "English"
    prompt: str = Field(default="", max_length=4000)
    store_context: dict[str, Any] = Field(default_factory=dict)

    def to_context(self) -> GenerationContext:
        return GenerationContext(
            theme=self.theme,
            tone=self.tone,
            language=self.language,
            prompt=self.prompt,
            store_context=dict(self.store_context),
        )


class GenerateRequest(BaseModel):
    """What the client sends to POST /api/generate."""

    model_config = {"extra": "forbid"}

    template: TemplatePayload
    context: GenerationContextPayload = Field(default_factory=GenerationContextPayload)
    section_id: str | None = None


class GenerateResponse(BaseModel):
    template: dict[str, Any]
    outcomes: list[dict[str, Any]]
    succeeded: list[str]
    failed: list[str]


class LayoutRequest(BaseModel):
    """What the client sends to POST /api/layout."""

    model_config = {"extra": "forbid"}

    prompt: str = Field(min_length=1, max_length=4000)
    tone: str = "Professional"
    language: str = "English"


class LayoutResponse(BaseModel):
    types: list[str]
