"""Published article endpoints."""

from typing import Any

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from layoutforge.api.v1.dependencies import Publishing
from layoutforge.services.article_renderer import render_article_page

router = APIRouter()


@router.get("/{article_id}", summary="Get a published article")
async def get_published_article(article_id: str, publishing: Publishing) -> dict[str, Any]:
    published = await publishing.get(article_id)
    return published.model_dump(by_alias=True, mode="json")


@router.get("/{article_id}/html", response_class=HTMLResponse, summary="Render a published article")
async def get_published_article_html(article_id: str, publishing: Publishing) -> HTMLResponse:
    """Standalone page for share links."""
    published = await publishing.get(article_id)
    article = await publishing.resolve(article_id)
    return HTMLResponse(render_article_page(article, published.title))
