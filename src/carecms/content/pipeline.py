"""Render a page and its ordered blocks into a complete HTML document."""

from __future__ import annotations

import html
import logging
from typing import Iterable, Optional

from carecms.content.blocks import BLOCK_RENDERERS, render_unknown, safe_url
from carecms.content.converter import MarkdownConverter, render_text
from carecms.content.templates import load_stylesheet, render_document
from carecms.core.models import (
    PAGE_CONTENT_POLICY,
    AppConfig,
    Block,
    BlockType,
    Page,
    SanitizationPolicy,
    SiteSettings,
)
from carecms.sanitize.base import Sanitizer
from carecms.sanitize.factory import sanitizer_from_config

logger = logging.getLogger(__name__)


class PageRenderer:
    """Compose converter, sanitizer and templates into page HTML.

    Holds only read-only collaborators, so one instance can serve any number
    of concurrent renders. Nothing is cached between calls.
    """

    def __init__(
        self,
        converter: MarkdownConverter,
        sanitizer: Sanitizer,
        policy: SanitizationPolicy = PAGE_CONTENT_POLICY,
        site: Optional[SiteSettings] = None,
    ):
        self.converter = converter
        self.sanitizer = sanitizer
        self.policy = policy
        self.site = site or SiteSettings()

    def _rich(self, html: str) -> str:
        return self.sanitizer.sanitize(html, self.policy)

    def render_block(self, block: Block) -> str:
        """Render one block to an HTML fragment."""
        data = block.data or {}
        if block.type == BlockType.TEXT.value:
            text = render_text(str(data.get("text") or ""), self.converter)
            return f"<div>{self._rich(text)}</div>"
        if block.type == BlockType.HTML.value:
            # Written by privileged authors only; stored as approved markup
            return str(data.get("html") or "")

        renderer = BLOCK_RENDERERS.get(block.type)
        if renderer is None:
            logger.warning("Unknown block type %r (block %s)", block.type, block.id)
            return render_unknown(block.type)
        return renderer(data, self._rich)

    def render_blocks(self, blocks: Iterable[Block]) -> list[str]:
        """Render blocks in ascending position; ties keep their input order."""
        ordered = sorted(blocks, key=lambda b: b.position)
        return [self.render_block(block) for block in ordered]

    def render(self, page: Page, blocks: Iterable[Block]) -> str:
        """Render the full document for a page."""
        fragments = self.render_blocks(blocks)
        title = page.seo_title or page.title or self.site.header.logo_text
        main_html = "\n".join(fragments)
        if not any("<h1" in fragment.lower() for fragment in fragments):
            main_html = main_html + "\n" + _fallback_heading(page.title or title)

        header = self.site.header.model_copy(update={
            "nav_items": [
                item.model_copy(update={"link": safe_url(item.link, "/")})
                for item in self.site.header.nav_items
            ],
        })
        footer = self.site.footer.model_copy(update={
            "privacy_link": safe_url(self.site.footer.privacy_link, ""),
        })

        logger.debug("Rendered page %r with %d block(s)", page.slug, len(fragments))
        return render_document(
            title=title,
            description=page.seo_description or "",
            lang=self.site.lang,
            css=load_stylesheet(self.site.stylesheet_path),
            header=header,
            footer=footer,
            cookie_banner=self.site.cookie_banner,
            main_html=main_html.strip("\n"),
        )


def _fallback_heading(title: str) -> str:
    return f"<h1>{html.escape(title)}</h1>"


def renderer_from_config(config: AppConfig) -> PageRenderer:
    """Build a renderer with the configured converter, sanitizer and page policy."""
    return PageRenderer(
        converter=MarkdownConverter(config.markdown),
        sanitizer=sanitizer_from_config(config),
        policy=config.policies.page,
        site=config.site,
    )
