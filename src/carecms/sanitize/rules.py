"""Element/attribute universes and URL scheme checks shared by both sanitizers."""

from __future__ import annotations

import re
from typing import Iterable, Optional

# Removed with their content under every policy
BLOCKED_ELEMENTS = frozenset({
    "script", "iframe", "object", "embed", "applet", "base", "meta", "link",
})

# Elements an unrestricted policy keeps (everything else is unwrapped)
HTML_ELEMENTS = frozenset({
    "a", "abbr", "address", "article", "aside", "b", "bdi", "bdo", "blockquote",
    "br", "caption", "cite", "code", "col", "colgroup", "dd", "del", "details",
    "dfn", "div", "dl", "dt", "em", "figcaption", "figure", "footer", "h1", "h2",
    "h3", "h4", "h5", "h6", "header", "hr", "i", "img", "ins", "kbd", "li",
    "main", "mark", "nav", "ol", "p", "picture", "pre", "q", "s", "samp",
    "section", "small", "source", "span", "strike", "strong", "sub", "summary",
    "sup", "table", "tbody", "td", "tfoot", "th", "thead", "time", "tr", "u",
    "ul", "var", "wbr",
})

SAFE_ATTRIBUTES = frozenset({
    "href", "src", "alt", "title", "target", "rel", "width", "height", "class",
    "id", "lang", "dir", "name", "cite", "datetime", "colspan", "rowspan",
    "align", "start", "reversed", "type", "srcset", "sizes", "loading", "open",
})

URL_ATTRIBUTES = frozenset({"href", "src"})

DEFAULT_SCHEMES = ("http", "https", "mailto")
FORBIDDEN_SCHEMES = frozenset({"javascript", "vbscript", "data"})

NEUTRALIZED_URL = "#"

_SCHEME_RE = re.compile(r"^([a-z][a-z0-9+.\-]*):", re.IGNORECASE)
# Browsers ignore ASCII whitespace and control characters inside a scheme
_IGNORED_URL_CHARS_RE = re.compile(r"[\x00-\x20\x7f]+")


def is_event_handler(attribute: str) -> bool:
    return attribute.strip().lower().startswith("on")


def url_scheme(value: str) -> Optional[str]:
    """Return the lower-cased scheme of a URL, or None for relative URLs."""
    normalized = _IGNORED_URL_CHARS_RE.sub("", value or "")
    match = _SCHEME_RE.match(normalized)
    return match.group(1).lower() if match else None


def is_safe_url(value: str, allowed_schemes: Iterable[str] = DEFAULT_SCHEMES) -> bool:
    """Check a URL against an allow-list of schemes.

    Relative URLs and fragments carry no scheme and are always safe.
    Forbidden schemes are rejected even when listed.
    """
    scheme = url_scheme(value)
    if scheme is None:
        return True
    if scheme in FORBIDDEN_SCHEMES:
        return False
    return scheme in {s.lower() for s in allowed_schemes}


def has_blocked_scheme(value: str, schemes: Iterable[str] = ("javascript", "data")) -> bool:
    """True when the URL uses one of the given schemes."""
    return url_scheme(value) in set(schemes)
