"""API v1 router aggregator."""

from fastapi import APIRouter

from layoutforge.api.v1 import articles, fetch, library, sessions, templates

api_router = APIRouter()

api_router.include_router(fetch.router, tags=["Fetch"])
api_router.include_router(templates.router, prefix="/templates", tags=["Templates"])
api_router.include_router(library.router, prefix="/library", tags=["Library"])
api_router.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
api_router.include_router(articles.router, prefix="/articles", tags=["Articles"])
