"""Publish finalized articles under shareable identifiers."""

from __future__ import annotations

import logging
from urllib.parse import quote, urlencode

from layoutforge.config import settings
from layoutforge.core.exceptions import InputError, NotFoundError
from layoutforge.core.ids import generate_article_id, now_millis
from layoutforge.integrations.collection_store import PUBLISHED, CollectionStore
from layoutforge.schemas.article import Article, TitleElement
from layoutforge.schemas.library import PublishedArticle, ShareLinks

logger = logging.getLogger(__name__)

UNTITLED = "Untitled article"


def derive_title(article: Article) -> str:
    """First non-empty title element's content, else the fallback."""
    for section in article.sections:
        for element in section.elements:
            if isinstance(element, TitleElement) and element.content:
                return element.content
    return UNTITLED


def build_share_links(article_id: str, title: str, base_url: str | None = None) -> ShareLinks:
    base = base_url or settings.share_base_url
    share_url = f"{base}?{urlencode({'article': article_id})}"
    encoded_url = quote(share_url, safe="")
    encoded_title = quote(title, safe="")
    return ShareLinks(
        article_id=article_id,
        share_url=share_url,
        weibo=f"https://service.weibo.com/share/share.php?url={encoded_url}&title={encoded_title}",
        twitter=f"https://twitter.com/intent/tweet?url={encoded_url}&text={encoded_title}",
        facebook=f"https://www.facebook.com/sharer/sharer.php?u={encoded_url}",
    )


class PublishingService:
    """Store articles as immutable snapshots and resolve them by id."""

    def __init__(self, store: CollectionStore | None = None) -> None:
        self.store = store or CollectionStore(PUBLISHED)

    async def publish(
        self,
        article: Article,
        title: str | None = None,
    ) -> tuple[PublishedArticle, ShareLinks]:
        if not article.sections:
            raise InputError("Nothing to publish: the article has no sections")

        created_ms = now_millis()
        resolved_title = (title or "").strip() or derive_title(article)
        published = PublishedArticle(
            id=generate_article_id(created_ms),
            title=resolved_title,
            article=article.to_payload(),
            created_at=created_ms / 1000,
        )
        await self.store.prepend(published.model_dump(by_alias=True, mode="json"))
        links = build_share_links(published.id, published.title)
        logger.info(
            "Article published",
            extra={
                "article_id": published.id,
                "title": published.title,
                "section_count": len(article.sections),
            },
        )
        return published, links

    async def get(self, article_id: str) -> PublishedArticle:
        payload = await self.store.find(article_id)
        if payload is None:
            raise NotFoundError("Article", article_id)
        return PublishedArticle.model_validate(payload)

    async def resolve(self, article_id: str) -> Article:
        """Reload a published article; legacy snapshots are normalized on the way in."""
        published = await self.get(article_id)
        return Article.model_validate(published.article)
