"""Composer session endpoints: active template, generation, publishing."""

from dataclasses import asdict

from fastapi import APIRouter

from layoutforge.api.v1.dependencies import Generation, Publishing, Sessions
from layoutforge.config import settings
from layoutforge.core.exceptions import InputError, NotFoundError
from layoutforge.schemas.api import (
    ActiveTemplateRequest,
    ActiveTemplateResponse,
    ArticleResponse,
    AttachmentPayload,
    GenerateRequest,
    PublishRequest,
    PublishResponse,
    RepairPayload,
)
from layoutforge.schemas.attachment import Attachment, fit_within
from layoutforge.services.article_renderer import render_article
from layoutforge.services.session import ComposerSession

router = APIRouter()


def _to_attachment(payload: AttachmentPayload) -> Attachment:
    bounded = fit_within(
        payload.width,
        payload.height,
        settings.attachment_max_width,
        settings.attachment_max_height,
    )
    if bounded != (payload.width, payload.height):
        raise InputError(
            "Attachment must be downscaled before upload",
            details={
                "width": payload.width,
                "height": payload.height,
                "max_width": settings.attachment_max_width,
                "max_height": settings.attachment_max_height,
            },
        )
    return Attachment.from_base64(
        payload.data,
        mime_type=payload.mime_type,
        width=payload.width,
        height=payload.height,
    )


def _to_attachments(payloads: list[AttachmentPayload]) -> list[Attachment]:
    """Decode every attachment, releasing the ones already decoded if a later one fails."""
    attachments: list[Attachment] = []
    try:
        for payload in payloads:
            attachments.append(_to_attachment(payload))
    except InputError:
        for attachment in attachments:
            attachment.release()
        raise
    return attachments


def _article_response(session: ComposerSession) -> ArticleResponse:
    if session.article is None:
        raise NotFoundError("Article", session.session_id)
    return ArticleResponse(
        article=session.article.to_payload(),
        html=render_article(session.article),
        repairs=[RepairPayload(**asdict(repair)) for repair in session.repairs],
        schema_mismatch=session.schema_mismatch,
        template_id=session.active_template_id,
    )


@router.put(
    "/{session_id}/active-template",
    response_model=ActiveTemplateResponse,
    summary="Select or clear the active template",
)
async def set_active_template(
    session_id: str,
    payload: ActiveTemplateRequest,
    sessions: Sessions,
    service: Generation,
) -> ActiveTemplateResponse:
    session = sessions.get(session_id)
    await service.set_active_template(session, payload.template_id)
    return ActiveTemplateResponse(session_id=session_id, template_id=session.active_template_id)


@router.post(
    "/{session_id}/generate",
    response_model=ArticleResponse,
    summary="Generate an article",
)
async def generate_article(
    session_id: str,
    payload: GenerateRequest,
    sessions: Sessions,
    service: Generation,
) -> ArticleResponse:
    """Generate an article under the session's active template.

    A second request while one is running for the same session gets 409.
    """
    session = sessions.get(session_id)
    attachments = _to_attachments(payload.attachments)
    artifact = await service.generate(session, payload.intent, attachments)
    return ArticleResponse(
        article=artifact.article.to_payload(),
        html=artifact.rendered_html,
        repairs=[RepairPayload(**asdict(repair)) for repair in artifact.repairs],
        schema_mismatch=artifact.schema_mismatch,
        template_id=artifact.template_id,
    )


@router.get("/{session_id}/article", response_model=ArticleResponse, summary="Current article")
async def get_current_article(session_id: str, sessions: Sessions) -> ArticleResponse:
    return _article_response(sessions.get(session_id))


@router.post("/{session_id}/publish", response_model=PublishResponse, summary="Publish the current article")
async def publish_article(
    session_id: str,
    payload: PublishRequest,
    sessions: Sessions,
    publishing: Publishing,
) -> PublishResponse:
    session = sessions.get(session_id)
    if session.article is None:
        raise InputError("Nothing to publish: generate an article first")

    published, links = await publishing.publish(session.article, payload.title)
    session.last_published_id = published.id
    return PublishResponse(
        id=published.id,
        title=published.title,
        share_url=links.share_url,
        share_links={
            "weibo": links.weibo,
            "twitter": links.twitter,
            "facebook": links.facebook,
        },
    )
