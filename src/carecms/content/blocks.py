"""Renderers for the structured block types of the page editor.

Each renderer takes the block's ``data`` mapping and a ``rich`` callable that
sanitizes author-supplied HTML. Plain fields are escaped by the templates;
URL fields are checked here before they reach an attribute.
"""

from __future__ import annotations

import re
from typing import Any, Callable

from carecms.content.templates import render_block_template
from carecms.core.models import BlockType
from carecms.sanitize.rules import NEUTRALIZED_URL, is_safe_url

RichFormatter = Callable[[str], str]
BlockRenderer = Callable[[dict[str, Any], RichFormatter], str]

DEFAULT_HERO_IMAGE = "https://images.unsplash.com/photo-1506929562872-bb421503ef21?q=80&w=2070&auto=format&fit=crop"
DEFAULT_ABOUT_IMAGE = "https://placehold.co/600x720/E9EAF2/032A49?text=Photo"
DEFAULT_IMAGE = "https://via.placeholder.com/800x400"

_CSS_LENGTH_RE = re.compile(r"^\d{1,4}(?:\.\d+)?(?:px|rem|em|vh|%)$")
_STYLE_NAME_RE = re.compile(r"^[a-z][a-z0-9-]{0,31}$")
_CSS_URL_UNSAFE_RE = re.compile(r"[\s'\"()\\]")


def safe_url(value: Any, default: str = NEUTRALIZED_URL) -> str:
    """Return the URL when its scheme is allowed, otherwise "#"."""
    url = str(value or "").strip() or default
    return url if is_safe_url(url) else NEUTRALIZED_URL


def _css_url(value: Any, default: str) -> str:
    """Like safe_url, for values placed inside a CSS url('...')."""
    url = safe_url(value, default)
    return default if _CSS_URL_UNSAFE_RE.search(url) else url


def _text(data: dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    return default if value is None else str(value)


def _columns(data: dict[str, Any], default: int) -> int:
    try:
        columns = int(data.get("columns", default))
    except (TypeError, ValueError):
        return default
    return min(max(columns, 1), 6)


def render_main_screen(data: dict[str, Any], rich: RichFormatter) -> str:
    return render_block_template(
        "main_screen",
        background=_css_url(data.get("backgroundImage"), DEFAULT_HERO_IMAGE),
        title=rich(_text(data, "title")),
        text=_text(data, "text"),
        button_text=_text(data, "buttonText", "Learn more"),
        button_link=safe_url(data.get("buttonLink")),
    )


def render_page_header(data: dict[str, Any], rich: RichFormatter) -> str:
    return render_block_template(
        "page_header",
        title=_text(data, "title", "Heading"),
        subtitle=_text(data, "subtitle"),
    )


def render_text_block(data: dict[str, Any], rich: RichFormatter) -> str:
    alignment = _text(data, "alignment", "left")
    if alignment not in ("left", "center", "right"):
        alignment = "left"
    return render_block_template(
        "text_block",
        title=_text(data, "title"),
        content=rich(_text(data, "content")),
        align_class=f"text-{alignment}",
        container_class="article-container" if data.get("containerStyle") == "article" else "container",
    )


def render_image_block(data: dict[str, Any], rich: RichFormatter) -> str:
    return render_block_template(
        "image_block",
        url=safe_url(data.get("url"), DEFAULT_IMAGE),
        alt=_text(data, "alt"),
        caption=_text(data, "caption"),
    )


def render_blockquote(data: dict[str, Any], rich: RichFormatter) -> str:
    return render_block_template("blockquote", text=_text(data, "text"))


def render_button(data: dict[str, Any], rich: RichFormatter) -> str:
    style = _text(data, "style", "primary")
    return render_block_template(
        "button",
        text=_text(data, "text", "Click me"),
        link=safe_url(data.get("link")),
        style=style if _STYLE_NAME_RE.match(style) else "primary",
    )


def render_section_title(data: dict[str, Any], rich: RichFormatter) -> str:
    return render_block_template(
        "section_title",
        title=_text(data, "title"),
        subtitle=_text(data, "subtitle"),
    )


def render_section_divider(data: dict[str, Any], rich: RichFormatter) -> str:
    return render_block_template("section_divider")


def render_spacer(data: dict[str, Any], rich: RichFormatter) -> str:
    height = _text(data, "height", "40px").strip()
    return render_block_template("spacer", height=height if _CSS_LENGTH_RE.match(height) else "40px")


def render_service_cards(data: dict[str, Any], rich: RichFormatter) -> str:
    cards = [
        {
            "icon": rich(_text(card, "icon")),
            "title": _text(card, "title"),
            "text": _text(card, "text"),
        }
        for card in data.get("cards") or []
        if isinstance(card, dict)
    ]
    return render_block_template(
        "service_cards",
        title=_text(data, "title"),
        subtitle=_text(data, "subtitle"),
        columns=_columns(data, 2),
        cards=cards,
    )


def render_article_cards(data: dict[str, Any], rich: RichFormatter) -> str:
    cards = [
        {
            "image": safe_url(card.get("image"), ""),
            "title": _text(card, "title"),
            "text": _text(card, "text"),
            "link": safe_url(card.get("link")),
        }
        for card in data.get("cards") or []
        if isinstance(card, dict)
    ]
    return render_block_template(
        "article_cards",
        title=_text(data, "title"),
        columns=_columns(data, 3),
        cards=cards,
    )


def render_about_section(data: dict[str, Any], rich: RichFormatter) -> str:
    paragraphs = []
    for item in data.get("paragraphs") or []:
        if isinstance(item, dict):
            paragraphs.append(_text(item, "text"))
        else:
            paragraphs.append(str(item))
    return render_block_template(
        "about_section",
        image=safe_url(data.get("image"), DEFAULT_ABOUT_IMAGE),
        title=_text(data, "title", "About me"),
        paragraphs=paragraphs,
    )


def render_unknown(block_type: str) -> str:
    return render_block_template("unknown", block_type=block_type)


BLOCK_RENDERERS: dict[str, BlockRenderer] = {
    BlockType.MAIN_SCREEN.value: render_main_screen,
    BlockType.PAGE_HEADER.value: render_page_header,
    BlockType.TEXT_BLOCK.value: render_text_block,
    BlockType.IMAGE_BLOCK.value: render_image_block,
    BlockType.BLOCKQUOTE.value: render_blockquote,
    BlockType.BUTTON.value: render_button,
    BlockType.SECTION_TITLE.value: render_section_title,
    BlockType.SECTION_DIVIDER.value: render_section_divider,
    BlockType.SPACER.value: render_spacer,
    BlockType.SERVICE_CARDS.value: render_service_cards,
    BlockType.ARTICLE_CARDS.value: render_article_cards,
    BlockType.ABOUT_SECTION.value: render_about_section,
}
