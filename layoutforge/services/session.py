"""Per-user composer state: active template, current article, busy flag."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from layoutforge.core.exceptions import GenerationInProgressError
from layoutforge.schemas.article import Article
from layoutforge.schemas.template import TemplateSchema
from layoutforge.services.response_validator import RepairAction

logger = logging.getLogger(__name__)


@dataclass
class ComposerSession:
    """State one composer holds between requests.

    ``article`` is replaced only after a fully successful generation, so a
    failed attempt leaves the previous article on display.
    """

    session_id: str
    active_template: TemplateSchema | None = None
    article: Article | None = None
    repairs: list[RepairAction] = field(default_factory=list)
    schema_mismatch: bool = False
    last_published_id: str | None = None
    busy: bool = False

    @property
    def active_template_id(self) -> str | None:
        return self.active_template.id if self.active_template else None

    @contextmanager
    def generation_slot(self) -> Iterator[None]:
        """Hold the session's single generation slot; a second holder is refused."""
        if self.busy:
            logger.warning("Generation refused: already running", extra={"session_id": self.session_id})
            raise GenerationInProgressError(self.session_id)
        self.busy = True
        try:
            yield
        finally:
            self.busy = False


class SessionRegistry:
    """In-process map of session id to composer session."""

    def __init__(self) -> None:
        self._sessions: dict[str, ComposerSession] = {}

    def get(self, session_id: str) -> ComposerSession:
        session = self._sessions.get(session_id)
        if session is None:
            session = ComposerSession(session_id=session_id)
            self._sessions[session_id] = session
            logger.info("Session created", extra={"session_id": session_id})
        return session

    def __len__(self) -> int:
        return len(self._sessions)
