"""Per-section theme resolution."""

from layoutforge.schemas.article import THEME_FIELDS, Article, ArticleSection, Theme
from layoutforge.schemas.template import TemplateStyle

DEFAULT_THEME = Theme(
    primary_color="#1e293b",
    secondary_color="#ffffff",
    accent_color="#3b82f6",
    font_family="system-ui, sans-serif",
)


def template_theme(style: TemplateStyle | None) -> Theme | None:
    """Project a template's style onto the theme shape."""
    if style is None:
        return None
    return Theme(
        primary_color=style.primary_color,
        secondary_color=style.secondary_color,
        accent_color=style.accent_color,
        font_family=style.font_description,
    )


def resolve_theme(
    section_theme: Theme | None,
    template_style: TemplateStyle | None = None,
    default: Theme = DEFAULT_THEME,
) -> Theme:
    """Fill every theme field: template value, then section value, then default.

    Precedence is decided field by field, so a template that only fixes the
    primary color still lets the section choose its own accent.
    """
    layers = [template_theme(template_style), section_theme, default]
    resolved = {}
    for name in THEME_FIELDS:
        resolved[name] = next(
            (getattr(layer, name) for layer in layers if layer is not None and getattr(layer, name)),
            None,
        )
    return Theme(**resolved)


def apply_themes(article: Article, template_style: TemplateStyle | None = None) -> Article:
    """Return a copy of the article where every section carries a complete theme."""
    sections: list[ArticleSection] = [
        section.model_copy(update={"theme": resolve_theme(section.theme, template_style)})
        for section in article.sections
    ]
    return Article(sections=sections)
