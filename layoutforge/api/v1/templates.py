"""Template analysis and template library endpoints."""

from typing import Any

from fastapi import APIRouter, status

from layoutforge.api.v1.dependencies import TemplateAnalysis, Templates
from layoutforge.schemas.api import AnalyzeTemplateRequest, AnalyzeUrlRequest, TemplatePreviewResponse
from layoutforge.services.template_preview import render_template_preview

router = APIRouter()


@router.post("/analyze", status_code=status.HTTP_201_CREATED, summary="Analyze an uploaded page")
async def analyze_template(
    payload: AnalyzeTemplateRequest,
    service: TemplateAnalysis,
) -> dict[str, Any]:
    """Extract a layout template from uploaded HTML and store it."""
    schema = await service.analyze_upload(payload.file_content, payload.file_name)
    return schema.to_payload()


@router.post("/analyze-url", status_code=status.HTTP_201_CREATED, summary="Analyze a page by URL")
async def analyze_template_url(
    payload: AnalyzeUrlRequest,
    service: TemplateAnalysis,
) -> dict[str, Any]:
    """Fetch a page, extract its layout template and store it."""
    schema = await service.analyze_url(payload.url)
    return schema.to_payload()


@router.get("", summary="List stored templates")
async def list_templates(library: Templates) -> list[dict[str, Any]]:
    return [schema.to_payload() for schema in await library.list_templates()]


@router.get("/{template_id}", summary="Get a stored template")
async def get_template(template_id: str, library: Templates) -> dict[str, Any]:
    schema = await library.get_template(template_id)
    return schema.to_payload()


@router.get(
    "/{template_id}/preview",
    response_model=TemplatePreviewResponse,
    summary="Preview a template with placeholder content",
)
async def preview_template(template_id: str, library: Templates) -> TemplatePreviewResponse:
    """Render the template's sections as empty slots in its own colors."""
    schema = await library.get_template(template_id)
    preview, html = render_template_preview(schema)
    return TemplatePreviewResponse(template_id=schema.id, article=preview.to_payload(), html=html)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a template")
async def delete_template(template_id: str, library: Templates) -> None:
    await library.delete_template(template_id)
