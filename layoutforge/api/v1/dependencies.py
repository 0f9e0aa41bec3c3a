"""Service dependencies shared across v1 routes."""

from typing import Annotated

from fastapi import Depends, Request

from layoutforge.integrations.page_fetcher import PageFetcher
from layoutforge.services.article_generation import ArticleGenerationService
from layoutforge.services.publishing import PublishingService
from layoutforge.services.session import SessionRegistry
from layoutforge.services.template_analysis import TemplateAnalysisService
from layoutforge.services.template_library import ReferenceLibrary, TemplateLibrary


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_template_library() -> TemplateLibrary:
    return TemplateLibrary()


def get_reference_library() -> ReferenceLibrary:
    return ReferenceLibrary()


def get_publishing_service() -> PublishingService:
    return PublishingService()


def get_page_fetcher() -> PageFetcher:
    return PageFetcher()


def get_template_analysis_service(
    library: Annotated[TemplateLibrary, Depends(get_template_library)],
) -> TemplateAnalysisService:
    return TemplateAnalysisService(library=library)


def get_generation_service(
    templates: Annotated[TemplateLibrary, Depends(get_template_library)],
    references: Annotated[ReferenceLibrary, Depends(get_reference_library)],
) -> ArticleGenerationService:
    return ArticleGenerationService(template_library=templates, reference_library=references)


Sessions = Annotated[SessionRegistry, Depends(get_session_registry)]
Templates = Annotated[TemplateLibrary, Depends(get_template_library)]
References = Annotated[ReferenceLibrary, Depends(get_reference_library)]
Publishing = Annotated[PublishingService, Depends(get_publishing_service)]
Fetcher = Annotated[PageFetcher, Depends(get_page_fetcher)]
TemplateAnalysis = Annotated[TemplateAnalysisService, Depends(get_template_analysis_service)]
Generation = Annotated[ArticleGenerationService, Depends(get_generation_service)]
