"""JSON preview endpoints used by the page editor."""

from __future__ import annotations

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from carecms.content.converter import MarkdownConverter
from carecms.content.inline import inline_helpers, render_inline
from carecms.content.pipeline import PageRenderer
from carecms.core.models import (
    INLINE_PREVIEW_POLICY,
    UNRESTRICTED_POLICY,
    AppConfig,
    Block,
    Page,
    SanitizationPolicy,
)
from carecms.sanitize.audit import log_violations
from carecms.sanitize.base import Sanitizer
from carecms.web.deps import get_config, get_converter, get_renderer, get_sanitizer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

PolicyName = Literal["page", "inline_edit", "inline_preview", "unrestricted"]


class MarkdownPreviewRequest(BaseModel):
    markdown: str = ""


class InlinePreviewRequest(BaseModel):
    markdown: Optional[str] = None
    inline: bool = False


class SanitizeRequest(BaseModel):
    html: str = ""
    policy: PolicyName = "page"


class RenderPageRequest(BaseModel):
    page: Page
    blocks: list[Block] = Field(default_factory=list)


def _policy(name: str, config: AppConfig) -> SanitizationPolicy:
    return {
        "page": config.policies.page,
        "inline_edit": config.policies.inline_edit,
        "inline_preview": INLINE_PREVIEW_POLICY,
        "unrestricted": UNRESTRICTED_POLICY,
    }[name]


@router.post("/preview/markdown")
def preview_markdown(
    body: MarkdownPreviewRequest,
    config: AppConfig = Depends(get_config),
    converter: MarkdownConverter = Depends(get_converter),
    sanitizer: Sanitizer = Depends(get_sanitizer),
):
    html = sanitizer.sanitize(converter.to_html(body.markdown), config.policies.page)
    return {"html": html}


@router.post("/preview/inline")
def preview_inline(
    body: InlinePreviewRequest,
    sanitizer: Sanitizer = Depends(get_sanitizer),
):
    html = render_inline(body.markdown, inline=body.inline, **inline_helpers(sanitizer))
    return {"html": html}


@router.post("/sanitize")
def sanitize(
    body: SanitizeRequest,
    config: AppConfig = Depends(get_config),
    sanitizer: Sanitizer = Depends(get_sanitizer),
):
    cleaned = sanitizer.sanitize(body.html, _policy(body.policy, config))
    violations = log_violations("api sanitize", body.html, cleaned)
    return {"html": cleaned, "violations": violations}


@router.post("/pages/render", response_class=HTMLResponse)
def render_page(
    body: RenderPageRequest,
    renderer: PageRenderer = Depends(get_renderer),
):
    return HTMLResponse(renderer.render(body.page, body.blocks))
