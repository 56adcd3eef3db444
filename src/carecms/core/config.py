"""Configuration loader: YAML files + environment variables."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from carecms.core.models import (
    AppConfig,
    MarkdownConfig,
    PoliciesConfig,
    SanitizerBackend,
    SiteSettings,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _find_project_root() -> Path:
    """Walk up from cwd to find a directory containing pyproject.toml."""
    cwd = Path.cwd()
    for p in [cwd, *cwd.parents]:
        if (p / "pyproject.toml").exists():
            return p
    return cwd


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load configuration from YAML + environment variables.

    Priority: env vars > .env file > YAML defaults. Invalid values (unknown
    backend, forbidden scheme, unsafe attribute) raise at load time.
    """
    root = _find_project_root()
    load_dotenv(root / ".env")

    # Load YAML
    yaml_path = Path(config_path) if config_path else root / "config" / "default.yaml"
    yaml_data: dict = {}
    if yaml_path.exists():
        with open(yaml_path) as f:
            yaml_data = yaml.safe_load(f) or {}

    backend = os.getenv("CARECMS_SANITIZER_BACKEND", yaml_data.get("sanitizer_backend", "bleach"))

    # Markdown converter limits
    md_data = dict(yaml_data.get("markdown") or {})
    if os.getenv("CARECMS_MAX_NESTING"):
        md_data["max_nesting"] = int(os.environ["CARECMS_MAX_NESTING"])
    if os.getenv("CARECMS_MAX_INPUT_CHARS"):
        md_data["max_input_chars"] = int(os.environ["CARECMS_MAX_INPUT_CHARS"])
    markdown = MarkdownConfig(**md_data)

    # Sanitization policies; a missing section keeps the built-in defaults
    policies = PoliciesConfig(**(yaml_data.get("policies") or {}))

    # Site chrome
    site_data = dict(yaml_data.get("site") or {})
    if os.getenv("CARECMS_LANG"):
        site_data["lang"] = os.environ["CARECMS_LANG"]
    if os.getenv("CARECMS_STYLESHEET"):
        site_data["stylesheet_path"] = os.environ["CARECMS_STYLESHEET"]
    site = SiteSettings(**site_data)

    log_level = os.getenv("CARECMS_LOG_LEVEL", yaml_data.get("log_level", "INFO"))

    return AppConfig(
        sanitizer_backend=SanitizerBackend(str(backend).lower()),
        markdown=markdown,
        policies=policies,
        site=site,
        log_level=str(log_level).upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stderr at the given level."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
