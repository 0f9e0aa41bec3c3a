"""Layout extractor agent: sanitized page markup to a template schema JSON."""

import logging

from pydantic import BaseModel, Field

from layoutforge.agents.base_agent import BaseAgent
from layoutforge.config import settings

logger = logging.getLogger(__name__)


class LayoutExtractorInput(BaseModel):
    """Input for the layout extractor agent."""

    content: str = Field(description="Sanitized page markup")
    source_name: str = Field(default="", description="File name or URL of the source page")


class LayoutExtractorAgent(BaseAgent[LayoutExtractorInput]):
    """Agent for describing a page's visual layout as a reusable template.

    The reply is structure only: colors, typography intent and the ordered
    section/element tree. It must never carry the page's copy.
    """

    model_tier = "fast"
    temperature = 0.2
    service_name = "Layout extraction"

    @property
    def deadline_seconds(self) -> float:
        return settings.extraction_timeout_seconds

    @property
    def system_prompt(self) -> str:
        return """You analyze the layout and visual design of long-form articles (newsletter / official-account style pages) and describe them as a reusable template.

Describe STRUCTURE and STYLE only. Never copy the page's text into the output.

Return a single JSON object with exactly these fields:
{
  "templateName": "short template name (2-5 words)",
  "description": "one sentence on the template's character and what it suits",
  "styleAnalysis": {
    "primaryColor": "#rrggbb (main brand / heading color)",
    "secondaryColor": "#rrggbb (background / secondary color)",
    "accentColor": "#rrggbb (highlight color)",
    "fontFamily": "description of the typography",
    "overallStyle": "overall mood, e.g. minimal business / playful / luxury / fresh natural"
  },
  "layoutStructure": [
    {
      "sectionType": "header | content | list | image-text | cta | contact",
      "elements": [
        { "type": "title", "style": "large | medium | small", "alignment": "left | center | right" },
        { "type": "image", "size": "full | large | medium | small", "position": "top | bottom | left | right" },
        { "type": "text", "style": "paragraph | quote | highlight" },
        { "type": "list", "style": "bullet | number | icon | checkbox", "items": 3 }
      ]
    }
  ],
  "titleStyle": { "mainTitleSize": "large | medium | small", "mainTitleAlignment": "left | center", "sectionTitleSize": "large | medium | small", "hasUnderline": false, "hasIcon": false },
  "listStyle": { "type": "bullet | number | icon | checkbox", "indentation": "normal | large", "spacing": "compact | normal | spacious" },
  "imageStyle": { "corners": "rounded | square", "shadow": false, "caption": false }
}

Rules:
- Pick exactly ONE option wherever a field lists alternatives.
- Element "type" must be one of: title, image, text, list.
- layoutStructure lists the page's sections in top-to-bottom visual order.
- Each section's "elements" array lists its elements in the order they appear inside that section.
- Look carefully at whether images sit above or below the text, their relative size, and whether they have borders or shadows.
- "items" on a list is the number of list items observed.
- Colors are 6-digit hex values.

Return only the JSON object, with no markdown fences and no commentary."""

    def _build_prompt(self, input_data: LayoutExtractorInput) -> str:
        logger.info(
            "Building layout extraction prompt",
            extra={
                "source_name": input_data.source_name,
                "content_length": len(input_data.content),
            },
        )
        source_line = f"Source: {input_data.source_name}\n" if input_data.source_name else ""
        return (
            "Analyze the layout of this page.\n"
            f"{source_line}"
            "---\n"
            f"{input_data.content}\n"
            "---"
        )
