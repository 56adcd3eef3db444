"""Report which dangerous constructs a sanitization pass removed."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

_DANGEROUS_TAG_RE = re.compile(r"<(script|iframe|object|embed|applet)", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"\son\w+\s*=", re.IGNORECASE)
_JAVASCRIPT_URL_RE = re.compile(r"javascript:", re.IGNORECASE)
_DATA_HTML_URL_RE = re.compile(r"data:text/html", re.IGNORECASE)

_CHECKS = (
    (_DANGEROUS_TAG_RE, "Dangerous tag removed during sanitization"),
    (_EVENT_HANDLER_RE, "Event handler attribute removed during sanitization"),
    (_JAVASCRIPT_URL_RE, "javascript: URL removed during sanitization"),
    (_DATA_HTML_URL_RE, "data:text/html URL removed during sanitization"),
)


def find_violations(raw_html: str, sanitized_html: str) -> list[str]:
    """Compare input and sanitized output; one label per class of removed content."""
    violations = []
    for pattern, label in _CHECKS:
        if pattern.search(raw_html or "") and not pattern.search(sanitized_html or ""):
            violations.append(label)
    return violations


def log_violations(source: str, raw_html: str, sanitized_html: str) -> list[str]:
    """Log removed content at warning level and return the violation labels."""
    violations = find_violations(raw_html, sanitized_html)
    for violation in violations:
        logger.warning("%s: %s", source, violation)
    return violations
