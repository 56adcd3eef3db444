"""Tests for policy and content models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from carecms.core.models import (
    INLINE_EDIT_POLICY,
    Block,
    SanitizationPolicy,
)
from carecms.sanitize.rules import SAFE_ATTRIBUTES, is_safe_url, url_scheme


class TestSanitizationPolicy:

    def test_defaults(self):
        policy = SanitizationPolicy()
        assert policy.allowed_schemes == ["http", "https", "mailto"]
        assert policy.is_unrestricted
        assert policy.permitted_attributes("p") == SAFE_ATTRIBUTES

    def test_names_normalized(self):
        policy = SanitizationPolicy(allowed_tags=["P", "p", " Strong "], allowed_attributes={"A": ["HREF", "href"]})
        assert policy.allowed_tags == ["p", "strong"]
        assert policy.allowed_attributes == {"a": ["href"]}

    def test_unsafe_attribute_rejected(self):
        with pytest.raises(ValidationError):
            SanitizationPolicy(allowed_tags=["a"], allowed_attributes={"a": ["href", "onclick"]})
        with pytest.raises(ValidationError):
            SanitizationPolicy(allowed_attributes={"div": ["style"]})

    @pytest.mark.parametrize("scheme", ["javascript", "JavaScript", "data", "vbscript"])
    def test_forbidden_scheme_rejected(self, scheme):
        with pytest.raises(ValidationError):
            SanitizationPolicy(allowed_schemes=["https", scheme])

    def test_scheme_mapping_form(self):
        policy = SanitizationPolicy(allowed_schemes={"http": True, "HTTPS": True, "ftp": False})
        assert policy.allowed_schemes == ["http", "https"]

    def test_blocked_tags_never_permitted(self):
        policy = SanitizationPolicy(allowed_tags=["p", "script", "iframe"])
        assert policy.permitted_tags() == frozenset({"p"})
        assert "script" not in SanitizationPolicy().permitted_tags()

    def test_restricted_policy_attributes(self):
        assert INLINE_EDIT_POLICY.permitted_attributes("a") == frozenset({"href", "title", "target"})
        assert INLINE_EDIT_POLICY.permitted_attributes("p") == frozenset()

    def test_frozen(self):
        with pytest.raises(ValidationError):
            INLINE_EDIT_POLICY.allowed_tags = []


class TestUrlRules:

    @pytest.mark.parametrize("url,scheme", [
        ("https://x.org", "https"),
        ("  JavaScript:alert(1)", "javascript"),
        ("java\nscript:x", "javascript"),
        ("/relative/path", None),
        ("#top", None),
        ("page.html?a=b:c", None),
    ])
    def test_url_scheme(self, url, scheme):
        assert url_scheme(url) == scheme

    def test_is_safe_url(self):
        assert is_safe_url("https://x.org")
        assert is_safe_url("/about")
        assert not is_safe_url("javascript:alert(1)")
        assert not is_safe_url("data:text/html,x", ["data", "https"])
        assert not is_safe_url("ftp://x.org")
        assert is_safe_url("ftp://x.org", ["ftp"])


def test_block_is_immutable():
    block = Block(type="text", data={"text": "a"})
    with pytest.raises(ValidationError):
        block.position = 3
