"""Configuration inspection CLI commands."""

from __future__ import annotations

from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from carecms.core.config import load_config

console = Console()
config_app = typer.Typer(name="config", help="Inspect the effective configuration.")


@config_app.command("show")
def show(
    path: Optional[str] = typer.Option(None, "--path", help="YAML config file (defaults to config/default.yaml)"),
) -> None:
    """Show the effective configuration after env overrides."""
    try:
        cfg = load_config(path)
    except (ValueError, ValidationError) as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(1)

    table = Table(title="carecms configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("sanitizer_backend", cfg.sanitizer_backend.value)
    table.add_row("log_level", cfg.log_level)
    table.add_row("markdown.max_nesting", str(cfg.markdown.max_nesting))
    table.add_row("markdown.max_input_chars", str(cfg.markdown.max_input_chars))
    table.add_row("markdown.extensions", ", ".join(cfg.markdown.extensions))
    table.add_row("site.lang", cfg.site.lang)
    table.add_row("site.stylesheet_path", cfg.site.stylesheet_path or "-")
    table.add_row("site.cookie_banner", "[green]on[/green]" if cfg.site.cookie_banner.enabled else "[red]off[/red]")

    for name in ("page", "inline_edit"):
        policy = getattr(cfg.policies, name)
        tags = ", ".join(policy.allowed_tags) or "(all)"
        table.add_row(f"policies.{name}.tags", tags)
        table.add_row(f"policies.{name}.schemes", ", ".join(policy.allowed_schemes))

    console.print(table)
