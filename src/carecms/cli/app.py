"""Root CLI application: render pages and convert or sanitize content."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console

from carecms.cli.config_cmd import config_app
from carecms.content.converter import MarkdownConverter
from carecms.content.inline import inline_helpers, render_inline
from carecms.content.pipeline import renderer_from_config
from carecms.core.config import configure_logging, load_config
from carecms.core.models import UNRESTRICTED_POLICY, AppConfig, Block, Page
from carecms.sanitize.audit import find_violations
from carecms.sanitize.factory import sanitizer_from_config

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(
    name="carecms",
    help="carecms: sanitize, convert and render healthcare CMS content.",
    no_args_is_help=True,
)

# Register sub-command groups
app.add_typer(config_app)

@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a YAML config file"),
) -> None:
    ctx.obj = {"config_path": str(config) if config else None}


def _load(ctx: typer.Context) -> AppConfig:
    try:
        cfg = load_config((ctx.obj or {}).get("config_path"))
    except (ValueError, ValidationError) as exc:
        err_console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(1)
    configure_logging(cfg.log_level)
    return cfg


def _read(path: Path) -> str:
    if not path.is_file():
        err_console.print(f"[red]File not found:[/red] {path}")
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


def _emit(text: str, output: Optional[Path]) -> None:
    if output:
        output.write_text(text, encoding="utf-8")
        err_console.print(f"Wrote [cyan]{output}[/cyan]")
    else:
        # Plain stdout: rich markup would mangle HTML
        typer.echo(text)


@app.command()
def render(
    ctx: typer.Context,
    page_file: Path = typer.Argument(..., help="YAML or JSON file with a page and its blocks"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write HTML here instead of stdout"),
) -> None:
    """Render a page file to a full HTML document."""
    cfg = _load(ctx)
    raw = yaml.safe_load(_read(page_file)) or {}
    if not isinstance(raw, dict):
        err_console.print("[red]Page file must contain a mapping.[/red]")
        raise typer.Exit(1)

    page_data = raw.get("page") or {k: v for k, v in raw.items() if k != "blocks"}
    try:
        page = Page(**page_data)
        blocks = [Block(**b) for b in raw.get("blocks") or []]
    except ValidationError as exc:
        err_console.print(f"[red]Invalid page file:[/red] {exc}")
        raise typer.Exit(1)

    html = renderer_from_config(cfg).render(page, blocks)
    _emit(html, output)


@app.command()
def sanitize(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="HTML file to sanitize"),
    policy: str = typer.Option("page", "--policy", "-p", help="page | inline-edit | unrestricted"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    """Sanitize an HTML file and report what was removed."""
    cfg = _load(ctx)
    policies = {
        "page": cfg.policies.page,
        "inline-edit": cfg.policies.inline_edit,
        "unrestricted": UNRESTRICTED_POLICY,
    }
    if policy not in policies:
        err_console.print(f"[red]Unknown policy:[/red] {policy}")
        raise typer.Exit(1)

    raw = _read(file)
    cleaned = sanitizer_from_config(cfg).sanitize(raw, policies[policy])
    for violation in find_violations(raw, cleaned):
        err_console.print(f"[yellow]{violation}[/yellow]")
    _emit(cleaned, output)


@app.command("to-html")
def to_html(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Markdown file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    """Convert Markdown to HTML."""
    cfg = _load(ctx)
    _emit(MarkdownConverter(cfg.markdown).to_html(_read(file)), output)


@app.command("to-markdown")
def to_markdown(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="HTML file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    """Convert HTML back to Markdown (best effort)."""
    cfg = _load(ctx)
    _emit(MarkdownConverter(cfg.markdown).to_markdown(_read(file)), output)


@app.command()
def inline(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Inline Markdown to preview"),
    inline_mode: bool = typer.Option(False, "--inline", help="No paragraphs; newlines become <br>"),
) -> None:
    """Preview a field with the inline renderer."""
    cfg = _load(ctx)
    helpers = inline_helpers(sanitizer_from_config(cfg))
    typer.echo(render_inline(text, inline=inline_mode, **helpers))
