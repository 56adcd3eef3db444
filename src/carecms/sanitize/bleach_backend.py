"""Library-backed sanitizer: an attribute-filter pass followed by bleach."""

from __future__ import annotations

from bleach.sanitizer import Cleaner

from carecms.core.models import SanitizationPolicy
from carecms.sanitize.base import (
    Sanitizer,
    drop_blocked_content,
    filter_attributes,
    parse_fragment,
    serialize_children,
)
from carecms.sanitize.rules import SAFE_ATTRIBUTES


def build_cleaner(policy: SanitizationPolicy) -> Cleaner:
    """Translate a policy into a bleach Cleaner.

    Cleaners keep parser state, so one is built per call and never shared.
    """
    tags = policy.permitted_tags()
    if policy.is_unrestricted:
        attributes: dict[str, list[str]] = {"*": sorted(SAFE_ATTRIBUTES)}
    else:
        attributes = {tag: sorted(policy.permitted_attributes(tag)) for tag in tags}
    return Cleaner(
        tags=tags,
        attributes=attributes,
        protocols=frozenset(policy.allowed_schemes),
        strip=True,
        strip_comments=True,
    )


class BleachSanitizer(Sanitizer):
    """Sanitize with bleach after filtering attributes on the parse tree.

    The pre-pass removes blocked elements with their content, drops event
    handlers and attributes the policy does not grant, and rewrites unsafe
    URLs to "#". bleach then unwraps disallowed tags and re-checks protocols,
    so nothing bleach would discard has to be restored afterwards.
    """

    name = "bleach"

    def _sanitize(self, html: str, policy: SanitizationPolicy) -> str:
        root = parse_fragment(html)
        drop_blocked_content(root)
        for tag in root.find_all(True):
            filter_attributes(tag, policy)
        return build_cleaner(policy).clean(serialize_children(root))
