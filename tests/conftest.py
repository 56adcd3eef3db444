"""Pytest configuration and fixtures."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from carecms.content.converter import MarkdownConverter
from carecms.content.pipeline import PageRenderer
from carecms.core.models import AppConfig, MarkdownConfig, SanitizerBackend, SiteSettings
from carecms.sanitize.factory import create_sanitizer
from carecms.web.app import create_app


@pytest.fixture(params=[SanitizerBackend.BLEACH, SanitizerBackend.DOM], ids=["bleach", "dom"])
def sanitizer(request):
    """Each test using this fixture runs once per sanitizer backend."""
    return create_sanitizer(request.param)


@pytest.fixture
def bleach_sanitizer():
    return create_sanitizer(SanitizerBackend.BLEACH)


@pytest.fixture
def dom_sanitizer():
    return create_sanitizer(SanitizerBackend.DOM)


@pytest.fixture
def converter() -> MarkdownConverter:
    return MarkdownConverter(MarkdownConfig())


@pytest.fixture
def site() -> SiteSettings:
    return SiteSettings()


@pytest.fixture
def renderer(converter, sanitizer, site) -> PageRenderer:
    return PageRenderer(converter=converter, sanitizer=sanitizer, site=site)


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def client(app_config) -> TestClient:
    return TestClient(create_app(app_config))


@pytest.fixture
def config_file(tmp_path):
    """A minimal YAML config selecting the DOM sanitizer."""
    path = tmp_path / "carecms.yaml"
    path.write_text("sanitizer_backend: dom\nlog_level: WARNING\n")
    return path
