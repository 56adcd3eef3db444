"""Single-pass inline Markdown renderer used for live field previews."""

from __future__ import annotations

import html
import re
from typing import Callable, Optional

from carecms.core.models import INLINE_PREVIEW_POLICY, SanitizationPolicy
from carecms.sanitize.base import Sanitizer

Helper = Callable[[str], str]

# Any opening tag outside the inline formatting set
_DISALLOWED_TAG_RE = re.compile(
    r"<(?!/?(?:a|b|strong|i|em|u|s|strike|span|code|br)\b)[a-z][^>]*>", re.IGNORECASE
)
_LINE_ENDING_RE = re.compile(r"\r\n?")
_ESCAPED_MARKER_RE = re.compile(r"\\([*_~`\[\]])")

_LINK_RE = re.compile(r'\[([^\]]+)\]\(([^)\s]+)(?:\s+"([^"]+)")?\)')
_BOLD_STAR_RE = re.compile(r"\*\*([\s\S]+?)\*\*")
_BOLD_UNDERSCORE_RE = re.compile(r"__([\s\S]+?)__")
_STRIKE_RE = re.compile(r"~~([\s\S]+?)~~")
_ITALIC_STAR_RE = re.compile(r"(^|[^*])\*([^*\n]+?)\*(?!\*)")
_ITALIC_UNDERSCORE_RE = re.compile(r"(^|[^_])_([^_\n]+?)_(?!_)")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n{2,}")


def render_inline(
    markdown: Optional[str],
    sanitize: Optional[Helper] = None,
    escape_text: Optional[Helper] = None,
    escape_attr: Optional[Helper] = None,
    inline: bool = False,
) -> str:
    """Render links, bold, italic, strikethrough and line breaks.

    Input that already carries block-level or unknown tags is treated as
    legacy rich content and handed to ``sanitize`` untouched. Every result
    passes through ``sanitize``; missing helpers fall back to ``str``.
    """
    sanitize = sanitize or str
    escape_text = escape_text or str
    escape_attr = escape_attr or str

    if markdown is None or not str(markdown).strip():
        return ""
    source = str(markdown)

    if _DISALLOWED_TAG_RE.search(source):
        return sanitize(source)

    text = _LINE_ENDING_RE.sub("\n", source)
    text = _ESCAPED_MARKER_RE.sub(r"\1", text)

    def link(match: re.Match) -> str:
        label, href, title = match.groups()
        title_attr = f' title="{escape_attr(title)}"' if title else ""
        return f'<a href="{escape_attr(href)}"{title_attr}>{escape_text(label)}</a>'

    text = _LINK_RE.sub(link, text)
    text = _BOLD_STAR_RE.sub(r"<strong>\1</strong>", text)
    text = _BOLD_UNDERSCORE_RE.sub(r"<strong>\1</strong>", text)
    text = _STRIKE_RE.sub(r"<s>\1</s>", text)
    text = _ITALIC_STAR_RE.sub(r"\1<em>\2</em>", text)
    text = _ITALIC_UNDERSCORE_RE.sub(r"\1<em>\2</em>", text)

    if inline:
        return sanitize(text.replace("\n", "<br>"))

    paragraphs = [part.strip() for part in _PARAGRAPH_SPLIT_RE.split(text)]
    rendered = "".join(f"<p>{part.replace(chr(10), '<br>')}</p>" for part in paragraphs if part)
    if not rendered:
        rendered = f"<p>{text}</p>"
    return sanitize(rendered)


def inline_helpers(
    sanitizer: Sanitizer, policy: SanitizationPolicy = INLINE_PREVIEW_POLICY
) -> dict[str, Helper]:
    """Build the sanitize/escape callbacks a host passes to ``render_inline``."""
    return {
        "sanitize": lambda value: sanitizer.sanitize(value, policy),
        "escape_text": lambda value: html.escape(value, quote=False),
        "escape_attr": lambda value: html.escape(value, quote=True),
    }
