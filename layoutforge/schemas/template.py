"""Template schemas: structure-only layout descriptions extracted from a page."""

import math
import re
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from layoutforge.schemas.options import (
    Alignment,
    ImagePosition,
    ImageSize,
    ListStyle,
    TextStyle,
    TitleSize,
    normalize_hex_color,
    normalize_option,
)

_SPEC_CONFIG = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")
_FIRST_INTEGER = re.compile(r"\d+")


class TitleSpec(BaseModel):
    """Title slot: size and alignment, never the text itself."""

    model_config = _SPEC_CONFIG

    kind: Literal["title"] = Field(default="title", alias="type")
    size: TitleSize = Field(default="medium", alias="style")
    alignment: Alignment = "left"

    @field_validator("size", mode="before")
    @classmethod
    def _size(cls, value: Any) -> str:
        return normalize_option(value, TitleSize, "medium")

    @field_validator("alignment", mode="before")
    @classmethod
    def _alignment(cls, value: Any) -> str:
        return normalize_option(value, Alignment, "left")


class ImageSpec(BaseModel):
    """Image slot: size class and position relative to the surrounding text."""

    model_config = _SPEC_CONFIG

    kind: Literal["image"] = Field(default="image", alias="type")
    size: ImageSize = "full"
    position: ImagePosition = "top"

    @field_validator("size", mode="before")
    @classmethod
    def _size(cls, value: Any) -> str:
        return normalize_option(value, ImageSize, "full")

    @field_validator("position", mode="before")
    @classmethod
    def _position(cls, value: Any) -> str:
        return normalize_option(value, ImagePosition, "top")


class TextSpec(BaseModel):
    """Text slot."""

    model_config = _SPEC_CONFIG

    kind: Literal["text"] = Field(default="text", alias="type")
    style: TextStyle = "paragraph"

    @field_validator("style", mode="before")
    @classmethod
    def _style(cls, value: Any) -> str:
        return normalize_option(value, TextStyle, "paragraph")


class ListSpec(BaseModel):
    """List slot with its marker style and expected item count."""

    model_config = _SPEC_CONFIG

    kind: Literal["list"] = Field(default="list", alias="type")
    style: ListStyle = "bullet"
    item_count: int = Field(default=3, alias="items", ge=0)

    @field_validator("style", mode="before")
    @classmethod
    def _style(cls, value: Any) -> str:
        return normalize_option(value, ListStyle, "bullet")

    @field_validator("item_count", mode="before")
    @classmethod
    def _item_count(cls, value: Any) -> Any:
        if isinstance(value, list):
            return len(value)
        if isinstance(value, bool) or value is None:
            return 3
        if isinstance(value, int):
            return max(value, 0)
        if isinstance(value, float):
            return max(int(value), 0) if math.isfinite(value) else 3
        match = _FIRST_INTEGER.search(str(value))
        return int(match.group()) if match else 3


ElementSpec = Annotated[
    Union[TitleSpec, ImageSpec, TextSpec, ListSpec],
    Field(discriminator="kind"),
]


class SectionSpec(BaseModel):
    """One layout region of the source page, in reading order."""

    model_config = _SPEC_CONFIG

    section_kind: str = Field(default="content", alias="sectionType")
    elements: tuple[ElementSpec, ...] = ()

    @field_validator("section_kind", mode="before")
    @classmethod
    def _section_kind(cls, value: Any) -> str:
        text = str(value or "").strip().lower()
        return text.split("/")[0] or "content"

    def element_kinds(self) -> list[str]:
        return [element.kind for element in self.elements]


class TemplateStyle(BaseModel):
    """Color scheme and typography intent of a template."""

    model_config = _SPEC_CONFIG

    primary_color: str | None = Field(default=None, alias="primaryColor")
    secondary_color: str | None = Field(default=None, alias="secondaryColor")
    accent_color: str | None = Field(default=None, alias="accentColor")
    font_description: str | None = Field(default=None, alias="fontFamily")
    overall_style_tag: str | None = Field(default=None, alias="overallStyle")

    @field_validator("primary_color", "secondary_color", "accent_color", mode="before")
    @classmethod
    def _color(cls, value: Any) -> str | None:
        return normalize_hex_color(value)


class TemplateSchema(BaseModel):
    """Structure-only description of a page layout, reused as a generation constraint.

    Field aliases match the JSON the extraction instruction asks the model for,
    which is also the persisted form in the template library.
    """

    model_config = _SPEC_CONFIG

    id: str | None = None
    name: str = Field(default="Untitled template", alias="templateName")
    description: str = ""
    style: TemplateStyle = Field(default_factory=TemplateStyle, alias="styleAnalysis")
    sections: tuple[SectionSpec, ...] = Field(alias="layoutStructure", min_length=1)
    title_style: dict[str, Any] = Field(default_factory=dict, alias="titleStyle")
    list_style: dict[str, Any] = Field(default_factory=dict, alias="listStyle")
    image_style: dict[str, Any] = Field(default_factory=dict, alias="imageStyle")
    file_name: str | None = Field(default=None, alias="fileName")
    created_at: float | None = Field(default=None, alias="createdAt")

    @field_validator("title_style", "list_style", "image_style", mode="before")
    @classmethod
    def _hint_mapping(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    def section_kind_sequences(self) -> list[list[str]]:
        return [section.element_kinds() for section in self.sections]

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the persisted (camelCase) form."""
        return self.model_dump(by_alias=True, mode="json")
