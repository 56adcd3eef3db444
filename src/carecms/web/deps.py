"""Shared dependencies for web routes.

Everything is built once in ``create_app`` and read from ``app.state``.
"""

from __future__ import annotations

from fastapi import Request

from carecms.content.converter import MarkdownConverter
from carecms.content.pipeline import PageRenderer
from carecms.core.models import AppConfig
from carecms.sanitize.base import Sanitizer


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_sanitizer(request: Request) -> Sanitizer:
    return request.app.state.renderer.sanitizer


def get_converter(request: Request) -> MarkdownConverter:
    return request.app.state.renderer.converter


def get_renderer(request: Request) -> PageRenderer:
    return request.app.state.renderer
