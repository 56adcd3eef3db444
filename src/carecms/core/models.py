"""Pydantic models for the carecms content core."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from carecms.sanitize.rules import (
    BLOCKED_ELEMENTS,
    DEFAULT_SCHEMES,
    FORBIDDEN_SCHEMES,
    HTML_ELEMENTS,
    SAFE_ATTRIBUTES,
)


class SanitizerBackend(str, Enum):
    BLEACH = "bleach"
    DOM = "dom"


class BlockType(str, Enum):
    TEXT = "text"
    HTML = "html"
    MAIN_SCREEN = "main-screen"
    PAGE_HEADER = "page-header"
    TEXT_BLOCK = "text-block"
    IMAGE_BLOCK = "image-block"
    BLOCKQUOTE = "blockquote"
    BUTTON = "button"
    SECTION_TITLE = "section-title"
    SECTION_DIVIDER = "section-divider"
    SPACER = "spacer"
    SERVICE_CARDS = "service-cards"
    ARTICLE_CARDS = "article-cards"
    ABOUT_SECTION = "about-section"


# --- Sanitization ---

def _dedupe_lower(values: list[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        name = str(value).strip().lower()
        if name and name not in seen:
            seen.append(name)
    return seen


class SanitizationPolicy(BaseModel):
    """Allow-lists for tags, per-tag attributes and URL schemes.

    An empty tag list admits every element of the HTML universe. When the
    attribute map is empty as well, every safe attribute is admitted on every
    tag; otherwise a tag without an entry keeps no attributes.
    """

    model_config = ConfigDict(frozen=True)

    allowed_tags: list[str] = Field(default_factory=list)
    allowed_attributes: dict[str, list[str]] = Field(default_factory=dict)
    allowed_schemes: list[str] = Field(default_factory=lambda: list(DEFAULT_SCHEMES))

    @field_validator("allowed_tags")
    @classmethod
    def _normalize_tags(cls, v: list[str]) -> list[str]:
        return _dedupe_lower(v)

    @field_validator("allowed_attributes")
    @classmethod
    def _normalize_attributes(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        normalized: dict[str, list[str]] = {}
        for tag, attrs in v.items():
            names = _dedupe_lower(list(attrs or []))
            unsafe = [name for name in names if name not in SAFE_ATTRIBUTES]
            if unsafe:
                raise ValueError(f"Attributes outside the safe universe for <{tag}>: {', '.join(unsafe)}")
            normalized[str(tag).strip().lower()] = names
        return normalized

    @field_validator("allowed_schemes", mode="before")
    @classmethod
    def _normalize_schemes(cls, v: Any) -> list[str]:
        # Accept the {"http": true, ...} mapping form as well as a list
        if isinstance(v, dict):
            v = [scheme for scheme, enabled in v.items() if enabled]
        schemes = _dedupe_lower(list(v or []))
        forbidden = [s for s in schemes if s in FORBIDDEN_SCHEMES]
        if forbidden:
            raise ValueError(f"Scheme can never be allowed: {', '.join(forbidden)}")
        return schemes

    @property
    def is_unrestricted(self) -> bool:
        return not self.allowed_tags and not self.allowed_attributes

    def permitted_tags(self) -> frozenset[str]:
        tags = frozenset(self.allowed_tags) if self.allowed_tags else HTML_ELEMENTS
        return tags - BLOCKED_ELEMENTS

    def permitted_attributes(self, tag: str) -> frozenset[str]:
        if self.is_unrestricted:
            return SAFE_ATTRIBUTES
        return frozenset(self.allowed_attributes.get(tag.lower(), ()))


UNRESTRICTED_POLICY = SanitizationPolicy()

# Defaults used for inline edits of block fields
INLINE_EDIT_POLICY = SanitizationPolicy(
    allowed_tags=["p", "h2", "h3", "h4", "strong", "em", "b", "i", "u", "s", "strike",
                  "a", "ul", "ol", "li", "img", "br"],
    allowed_attributes={
        "a": ["href", "title", "target"],
        "img": ["src", "alt", "width", "height", "class"],
    },
    allowed_schemes=["http", "https", "mailto"],
)

# Live preview of single fields rendered by the inline renderer
INLINE_PREVIEW_POLICY = SanitizationPolicy(
    allowed_tags=["p", "br", "a", "b", "strong", "i", "em", "u", "s", "strike", "span", "code"],
    allowed_attributes={"a": ["href", "title", "target", "rel"]},
)

# Defaults for rich block content on published pages
PAGE_CONTENT_POLICY = SanitizationPolicy(
    allowed_tags=["p", "br", "hr", "h1", "h2", "h3", "h4", "h5", "h6",
                  "strong", "em", "b", "i", "u", "s", "strike", "del",
                  "a", "ul", "ol", "li", "blockquote", "code", "pre", "img",
                  "table", "thead", "tbody", "tr", "th", "td", "span", "div"],
    allowed_attributes={
        "a": ["href", "title", "target", "rel"],
        "img": ["src", "alt", "title", "width", "height"],
        "code": ["class"],
        "td": ["align", "colspan", "rowspan"],
        "th": ["align", "colspan", "rowspan"],
        "span": ["class"],
        "div": ["class"],
    },
)


# --- Content ---

class Page(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    title: str = ""
    slug: str = ""
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None


class Block(BaseModel):
    """A typed content block; `data` shape depends on `type`."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    page_id: Optional[str] = None
    type: str
    position: int = 0
    data: dict[str, Any] = Field(default_factory=dict)
    custom_name: Optional[str] = None


# --- Configuration ---

UNSAFE_MARKDOWN_EXTENSIONS = frozenset({"extra", "md_in_html", "attr_list"})


class MarkdownConfig(BaseModel):
    max_nesting: int = Field(default=10, ge=1)
    max_input_chars: int = Field(default=200_000, ge=1)
    soft_break_as_br: bool = False
    tab_length: int = Field(default=4, ge=1)
    extensions: list[str] = Field(default_factory=lambda: ["fenced_code", "tables", "sane_lists"])

    @field_validator("extensions")
    @classmethod
    def _reject_unsafe_extensions(cls, v: list[str]) -> list[str]:
        # These re-enable raw HTML or let authors set arbitrary attributes
        for name in v:
            if name.rsplit(".", 1)[-1] in UNSAFE_MARKDOWN_EXTENSIONS:
                raise ValueError(f"Markdown extension not allowed: {name}")
        return v


class NavItem(BaseModel):
    text: str
    link: str = "/"


class HeaderSettings(BaseModel):
    logo_text: str = "Healthcare Hacks Brazil"
    nav_items: list[NavItem] = Field(default_factory=lambda: [NavItem(text="Home", link="/")])


class FooterSettings(BaseModel):
    logo_text: str = "Healthcare Hacks Brazil"
    copyright_text: str = ""
    privacy_link: str = ""
    privacy_link_text: str = "Privacy policy"


class CookieBannerSettings(BaseModel):
    enabled: bool = False
    message: str = "We use cookies to improve the site."
    accept_text: str = "Accept"
    details_text: str = "Details"


class SiteSettings(BaseModel):
    lang: str = "en"
    header: HeaderSettings = Field(default_factory=HeaderSettings)
    footer: FooterSettings = Field(default_factory=FooterSettings)
    cookie_banner: CookieBannerSettings = Field(default_factory=CookieBannerSettings)
    stylesheet_path: Optional[str] = None


class PoliciesConfig(BaseModel):
    page: SanitizationPolicy = Field(default_factory=lambda: PAGE_CONTENT_POLICY)
    inline_edit: SanitizationPolicy = Field(default_factory=lambda: INLINE_EDIT_POLICY)


class AppConfig(BaseModel):
    sanitizer_backend: SanitizerBackend = SanitizerBackend.BLEACH
    markdown: MarkdownConfig = Field(default_factory=MarkdownConfig)
    policies: PoliciesConfig = Field(default_factory=PoliciesConfig)
    site: SiteSettings = Field(default_factory=SiteSettings)
    log_level: str = "INFO"
