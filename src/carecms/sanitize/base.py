"""Sanitizer interface and the DOM passes both implementations share."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from bs4 import BeautifulSoup, Tag
from bs4.element import PreformattedString

from carecms.core.models import UNRESTRICTED_POLICY, SanitizationPolicy
from carecms.sanitize.rules import (
    BLOCKED_ELEMENTS,
    NEUTRALIZED_URL,
    URL_ATTRIBUTES,
    is_event_handler,
    is_safe_url,
)

logger = logging.getLogger(__name__)


class Sanitizer(ABC):
    """Turns untrusted HTML into HTML that only contains what a policy allows."""

    name: str = ""

    def sanitize(self, html: str, policy: Optional[SanitizationPolicy] = None) -> str:
        if not html:
            return ""
        return self._sanitize(html, policy or UNRESTRICTED_POLICY)

    @abstractmethod
    def _sanitize(self, html: str, policy: SanitizationPolicy) -> str:
        ...


def parse_fragment(html: str) -> Tag:
    """Parse an HTML fragment the way a browser parses <body> content.

    The returned <body> element is the wrapper: it holds any number of
    top-level nodes and is never serialized itself. html5lib is the parser
    bleach uses, so implied end tags and foreign content (svg, math) come out
    the same under both backends, and malformed markup is recovered from
    instead of raising.
    """
    soup = BeautifulSoup(f"<body>{html}", "html5lib")
    return soup.body


def serialize_children(root: Tag) -> str:
    return root.decode_contents(formatter="minimal")


def drop_blocked_content(root: Tag) -> int:
    """Remove blocked elements with their subtree, plus comments and doctypes."""
    removed = 0
    for tag in root.find_all(sorted(BLOCKED_ELEMENTS)):
        if tag.decomposed:
            continue
        tag.decompose()
        removed += 1
    for node in [n for n in root.descendants if isinstance(n, PreformattedString)]:
        node.extract()
    if removed:
        logger.debug("Removed %d blocked element(s)", removed)
    return removed


def filter_attributes(tag: Tag, policy: SanitizationPolicy) -> None:
    """Drop event handlers and disallowed attributes; neutralize unsafe URLs."""
    permitted = policy.permitted_attributes(tag.name)
    for name in list(tag.attrs):
        attr = name.lower()
        if is_event_handler(attr) or attr not in permitted:
            del tag[name]
            continue
        if attr in URL_ATTRIBUTES:
            value = tag[name]
            if isinstance(value, list):
                value = " ".join(value)
            if not is_safe_url(value, policy.allowed_schemes):
                tag[name] = NEUTRALIZED_URL
