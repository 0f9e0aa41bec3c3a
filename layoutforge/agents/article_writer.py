"""Article writer agent: compiled generation instruction to article JSON text."""

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic_ai import BinaryContent

from layoutforge.agents.base_agent import BaseAgent
from layoutforge.config import settings
from layoutforge.schemas.attachment import Attachment

logger = logging.getLogger(__name__)


class ArticleWriterInput(BaseModel):
    """Input for the article writer agent."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    instruction: str
    attachments: list[Attachment] = Field(default_factory=list)


class ArticleWriterAgent(BaseAgent[ArticleWriterInput]):
    """Agent for writing a sectioned article, optionally under a template contract."""

    model_tier = "standard"
    temperature = 0.8
    service_name = "Article generation"

    @property
    def deadline_seconds(self) -> float:
        return settings.generation_timeout_seconds

    @property
    def system_prompt(self) -> str:
        return (
            "You write engaging long-form marketing articles laid out as a sequence of "
            "sections. You always answer with a raw JSON array of sections and nothing else. "
            "When the request carries a layout contract you reproduce its section count, "
            "element order and colors exactly."
        )

    def _build_prompt(self, input_data: ArticleWriterInput) -> str:
        return input_data.instruction

    def _build_user_content(self, input_data: ArticleWriterInput) -> str | Sequence[Any]:
        images = [
            BinaryContent(data=attachment.data, media_type=attachment.mime_type)
            for attachment in input_data.attachments
            if attachment.data is not None
        ]
        if not images:
            return input_data.instruction

        logger.info(
            "Attaching images to generation request",
            extra={"attachment_count": len(images)},
        )
        return [input_data.instruction, *images]
