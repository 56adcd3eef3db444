"""Jinja2 template renderer for page documents and structured blocks."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

STYLE_PLACEHOLDER = "/* minimal test-safe styles */"


def _get_template_dir() -> Path:
    """Find the templates directory shipped inside the package."""
    templates_dir = Path(__file__).resolve().parent.parent / "templates"
    if templates_dir.exists():
        return templates_dir
    raise FileNotFoundError(f"Cannot find templates directory at {templates_dir}")


def get_env() -> Environment:
    """Return a Jinja2 environment; everything not marked safe is escaped."""
    return Environment(
        loader=FileSystemLoader(str(_get_template_dir())),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )


def render_block_template(name: str, **context: Any) -> str:
    """Render ``blocks/<name>.html.j2``."""
    template = get_env().get_template(f"blocks/{name}.html.j2")
    return template.render(**context).strip()


def load_stylesheet(path: Optional[str]) -> str:
    """Read the site stylesheet, or return the placeholder when there is none."""
    if path:
        css_path = Path(path)
        if css_path.is_file():
            return css_path.read_text(encoding="utf-8")
    return STYLE_PLACEHOLDER


def render_document(
    title: str,
    description: str,
    lang: str,
    css: str,
    header: Any,
    footer: Any,
    cookie_banner: Any,
    main_html: str,
) -> str:
    """Render the full page document around already-rendered block HTML."""
    template = get_env().get_template("page.html.j2")
    return template.render(
        title=title,
        description=description,
        lang=lang,
        css=css,
        header=header,
        footer=footer,
        cookie_banner=cookie_banner,
        main_html=main_html,
    )
