"""Fetch proxy endpoint."""

from fastapi import APIRouter, Query

from layoutforge.api.v1.dependencies import Fetcher
from layoutforge.schemas.api import FetchedPageResponse

router = APIRouter()


@router.get("/fetch-url", response_model=FetchedPageResponse, summary="Fetch a page's markup")
async def fetch_url(
    fetcher: Fetcher,
    url: str = Query(..., min_length=1),
) -> FetchedPageResponse:
    """Fetch remote markup server-side so the browser avoids CORS limits."""
    async with fetcher:
        page = await fetcher.fetch(url)
    return FetchedPageResponse(
        url=page.url,
        final_url=page.final_url,
        content_type=page.content_type,
        content=page.html,
    )
