"""DOM-walking sanitizer built on BeautifulSoup alone."""

from __future__ import annotations

from carecms.core.models import SanitizationPolicy
from carecms.sanitize.base import (
    Sanitizer,
    drop_blocked_content,
    filter_attributes,
    parse_fragment,
    serialize_children,
)


class DomSanitizer(Sanitizer):
    """Fallback sanitizer: every decision is made while walking the parse tree.

    Elements missing from the policy are unwrapped, so their text and any
    allowed descendants stay in place.
    """

    name = "dom"

    def _sanitize(self, html: str, policy: SanitizationPolicy) -> str:
        root = parse_fragment(html)
        drop_blocked_content(root)

        permitted = policy.permitted_tags()
        for tag in root.find_all(True):
            if tag.name not in permitted:
                tag.unwrap()
                continue
            filter_attributes(tag, policy)

        return serialize_children(root)
