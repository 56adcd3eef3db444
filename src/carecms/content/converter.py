"""Markdown <-> HTML conversion for block content and inline edits."""

from __future__ import annotations

import html
import logging
import re
from typing import Optional

import markdown
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString
from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor
from markdown.treeprocessors import Treeprocessor

from carecms.core.models import MarkdownConfig
from carecms.sanitize.rules import has_blocked_scheme

logger = logging.getLogger(__name__)

# Link targets rendered inert in converted Markdown
INERT_LINK_SCHEMES = ("javascript", "vbscript", "data", "file")

# One container marker: a blockquote ">" or a list bullet/number followed by space
_CONTAINER_MARKER_RE = re.compile(r"[ ]{0,3}(?:>[ ]?|(?:[*+-]|\d{1,9}[.)])[ \t]+)")


class NestingGuard(Preprocessor):
    """Cap container nesting before the block parser sees the source.

    Markers past ``max_nesting`` on a line are dropped, and leading
    indentation is cut to ``max_nesting * tab_length`` spaces.
    """

    def __init__(self, md, max_nesting: int):
        super().__init__(md)
        self.max_nesting = max_nesting
        self.max_indent = max_nesting * md.tab_length

    def run(self, lines: list[str]) -> list[str]:
        capped = 0
        result = []
        for line in lines:
            new_line = self._cap(line)
            if new_line != line:
                capped += 1
            result.append(new_line)
        if capped:
            logger.warning("Capped nesting depth on %d line(s) at %d levels", capped, self.max_nesting)
        return result

    def _cap(self, line: str) -> str:
        body = line.lstrip(" ")
        indent = len(line) - len(body)
        if indent > self.max_indent:
            indent = self.max_indent

        ends = []
        match = _CONTAINER_MARKER_RE.match(body)
        while match:
            ends.append(match.end())
            match = _CONTAINER_MARKER_RE.match(body, match.end())
        if len(ends) > self.max_nesting:
            body = body[: ends[self.max_nesting - 1]] + body[ends[-1]:]

        return " " * indent + body


class InertLinkTreeprocessor(Treeprocessor):
    """Remove href/src attributes that point at script-capable schemes."""

    def run(self, root) -> None:
        for tag, attr in (("a", "href"), ("img", "src")):
            for element in root.iter(tag):
                value = element.get(attr)
                # Entities survive serialization, so decode before checking
                if value is not None and has_blocked_scheme(html.unescape(value), INERT_LINK_SCHEMES):
                    del element.attrib[attr]
                    logger.debug("Removed unsafe %s from <%s>", attr, tag)


class SafeMarkdownExtension(Extension):
    """Escape raw HTML and bound nesting; must be loaded after other extensions."""

    def __init__(self, **kwargs):
        self.config = {
            "max_nesting": [10, "Deepest allowed blockquote/list nesting"],
        }
        super().__init__(**kwargs)

    def extendMarkdown(self, md):
        md.preprocessors.deregister("html_block", strict=False)
        md.inlinePatterns.deregister("html", strict=False)
        # After whitespace normalization, before fenced code
        md.preprocessors.register(NestingGuard(md, self.getConfig("max_nesting")), "nesting_guard", 27)
        # Attribute values still hold placeholders until "unescape" has run
        md.treeprocessors.register(InertLinkTreeprocessor(md), "inert_links", -10)


class MarkdownConverter:
    """Convert between Markdown and HTML.

    A new ``markdown.Markdown`` instance is built for every call; instances
    keep per-document state and are not safe to share between threads.
    """

    def __init__(self, config: Optional[MarkdownConfig] = None):
        self.config = config or MarkdownConfig()

    def _build(self) -> markdown.Markdown:
        extensions: list = list(self.config.extensions)
        if self.config.soft_break_as_br:
            extensions.append("nl2br")
        extensions.append(SafeMarkdownExtension(max_nesting=self.config.max_nesting))
        return markdown.Markdown(
            extensions=extensions,
            output_format="html",
            tab_length=self.config.tab_length,
        )

    def to_html(self, source: str) -> str:
        """Render Markdown to HTML with raw HTML escaped and unsafe links made inert."""
        if not source:
            return ""
        limit = self.config.max_input_chars
        if len(source) > limit:
            logger.warning("Markdown input truncated from %d to %d characters", len(source), limit)
            source = source[:limit]
        return self._build().convert(source)

    def to_markdown(self, source: str) -> str:
        """Best-effort conversion of HTML back to Markdown."""
        if not source:
            return ""
        soup = BeautifulSoup(source, "html.parser")
        text = _render_children(soup, in_pre=False)
        lines = [line.rstrip() for line in text.split("\n")]
        text = re.sub(r"\n{3,}", "\n\n", "\n".join(lines))
        return text.strip()


# --- HTML -> Markdown walker ---

_WHITESPACE_RE = re.compile(r"\s+")

_BLOCK_CONTAINERS = frozenset({
    "[document]", "div", "section", "article", "aside", "header", "footer",
    "main", "nav", "blockquote", "ul", "ol", "li", "table", "thead", "tbody",
    "tfoot", "tr", "figure", "body", "html",
})
_PASSTHROUGH_BLOCKS = frozenset({
    "div", "section", "article", "aside", "header", "footer", "main", "nav",
    "figure", "figcaption", "table", "tr", "dl", "dt", "dd", "address", "details",
})
_SKIPPED = frozenset({"script", "style", "head", "title", "template"})
_HEADINGS = {f"h{level}": level for level in range(1, 7)}
_LABEL_SPECIALS_RE = re.compile(r"([\[\]])")
_DESTINATION_ESCAPES = {" ": "%20", "(": "%28", ")": "%29"}


def _destination(url: str) -> str:
    """Percent-encode the characters that end a Markdown link destination."""
    return "".join(_DESTINATION_ESCAPES.get(char, char) for char in url.strip())


def _wrap(text: str, opener: str, closer: Optional[str] = None) -> str:
    """Surround the non-blank part of ``text`` with markers, keeping outer spacing."""
    core = text.strip()
    if not core:
        return text
    leading = text[: len(text) - len(text.lstrip())]
    trailing = text[len(text.rstrip()):]
    return f"{leading}{opener}{core}{closer if closer is not None else opener}{trailing}"


def _block(text: str) -> str:
    return f"\n\n{text}\n\n"


def _render_children(node: Tag, in_pre: bool) -> str:
    return "".join(_render_node(child, in_pre) for child in node.children)


def _render_list(node: Tag, in_pre: bool) -> str:
    ordered = node.name == "ol"
    start = node.get("start")
    number = int(start) if ordered and str(start or "").isdigit() else 1
    items = []
    for item in node.find_all("li", recursive=False):
        marker = f"{number}. " if ordered else "- "
        number += 1
        body = _render_children(item, in_pre).strip()
        body = re.sub(r"\n\s*\n", "\n", body)
        pad = " " * len(marker)
        items.append(marker + body.replace("\n", "\n" + pad))
    return _block("\n".join(items))


def _render_node(node, in_pre: bool) -> str:
    if isinstance(node, PreformattedString):
        return ""
    if isinstance(node, NavigableString):
        text = str(node)
        if in_pre:
            return text
        # Formatting whitespace between block elements
        if not text.strip() and "\n" in text and node.parent is not None and node.parent.name in _BLOCK_CONTAINERS:
            return ""
        text = _WHITESPACE_RE.sub(" ", text)
        if node.find_parent("a") is not None:
            text = _LABEL_SPECIALS_RE.sub(r"\\\1", text)
        return text
    if not isinstance(node, Tag):
        return ""

    name = node.name
    if name in _SKIPPED:
        return ""
    if name == "br":
        return "\n"
    if name == "hr":
        return _block("---")
    if name == "p":
        return _block(_render_children(node, in_pre).strip())
    if name in _HEADINGS:
        return _block("#" * _HEADINGS[name] + " " + _render_children(node, in_pre).strip())
    if name in ("strong", "b"):
        return _wrap(_render_children(node, in_pre), "**")
    if name in ("em", "i"):
        return _wrap(_render_children(node, in_pre), "_")
    if name in ("s", "strike", "del"):
        return _wrap(_render_children(node, in_pre), "~~")
    if name == "u":
        return _wrap(_render_children(node, in_pre), "<u>", "</u>")
    if name == "a":
        label = _render_children(node, in_pre).strip()
        href = node.get("href")
        if not href:
            return label
        title = node.get("title")
        if title:
            return f'[{label}]({_destination(href)} "{title}")'
        return f"[{label}]({_destination(href)})"
    if name == "img":
        src = node.get("src")
        if not src:
            return ""
        alt = _LABEL_SPECIALS_RE.sub(r"\\\1", node.get("alt", ""))
        return f"![{alt}]({_destination(src)})"
    if name == "code":
        if in_pre:
            return node.get_text()
        return f"`{node.get_text()}`"
    if name == "pre":
        code = node.find("code")
        language = ""
        if code is not None:
            for cls in code.get("class", []):
                if cls.startswith("language-"):
                    language = cls[len("language-"):]
        body = node.get_text().rstrip("\n")
        return _block(f"```{language}\n{body}\n```")
    if name == "blockquote":
        inner = _render_children(node, in_pre).strip()
        inner = re.sub(r"\n{3,}", "\n\n", inner)
        quoted = "\n".join(f"> {line}" if line.strip() else ">" for line in inner.split("\n"))
        return _block(quoted)
    if name in ("ul", "ol"):
        return _render_list(node, in_pre)
    if name in _PASSTHROUGH_BLOCKS:
        return _block(_render_children(node, in_pre).strip())
    if name in ("td", "th"):
        return _render_children(node, in_pre).strip() + " "
    return _render_children(node, in_pre)


# --- Legacy rich-text fields ---

_LEGACY_REPLACEMENTS = (
    (re.compile(r"<br\s*/?>", re.IGNORECASE), "\n\n"),
    (re.compile(r"</?(?:strong|b)>", re.IGNORECASE), "**"),
    (re.compile(r"</?(?:em|i)>", re.IGNORECASE), "_"),
)


def normalize_legacy_text(text: str) -> str:
    """Rewrite the inline tags older editors stored in text blocks as Markdown."""
    for pattern, replacement in _LEGACY_REPLACEMENTS:
        text = pattern.sub(replacement, text)
    return text


def render_text(text: str, converter: MarkdownConverter) -> str:
    """Convert a text field, unwrapping the outer <p> of single-paragraph output."""
    rendered = converter.to_html(normalize_legacy_text(text or "")).strip()
    fragment = BeautifulSoup(rendered, "html.parser")
    top = [node for node in fragment.contents if isinstance(node, Tag) or str(node).strip()]
    if len(top) == 1 and isinstance(top[0], Tag) and top[0].name == "p":
        return top[0].decode_contents()
    return rendered
