"""Tests for the command line interface."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from carecms.cli.app import app

runner = CliRunner()


@pytest.fixture
def invoke(config_file):
    def _invoke(*args):
        return runner.invoke(app, ["--config", str(config_file), *args])
    return _invoke


def test_inline(invoke):
    result = invoke("inline", "**b** _i_")
    assert result.exit_code == 0
    assert "<p><strong>b</strong> <em>i</em></p>" in result.output


def test_inline_mode(invoke):
    result = invoke("inline", "a\nb", "--inline")
    assert result.exit_code == 0
    assert "a<br>b" in result.output


def test_to_html(invoke, tmp_path):
    source = tmp_path / "doc.md"
    source.write_text("# Title\n\n**bold**")
    result = invoke("to-html", str(source))
    assert result.exit_code == 0
    assert "<h1>Title</h1>" in result.output
    assert "<strong>bold</strong>" in result.output


def test_to_markdown_to_file(invoke, tmp_path):
    source = tmp_path / "doc.html"
    source.write_text("<h2>Title</h2><p><b>x</b></p>")
    target = tmp_path / "doc.md"
    result = invoke("to-markdown", str(source), "--output", str(target))
    assert result.exit_code == 0
    assert target.read_text() == "## Title\n\n**x**"


def test_sanitize(invoke, tmp_path):
    source = tmp_path / "dirty.html"
    source.write_text('<p onclick="x()">ok</p><script>alert(1)</script>')
    result = invoke("sanitize", str(source))
    assert result.exit_code == 0
    assert "<p>ok</p>" in result.output
    assert "<script" not in result.output
    assert "Dangerous tag removed" in result.output


def test_sanitize_unknown_policy(invoke, tmp_path):
    source = tmp_path / "a.html"
    source.write_text("<p>x</p>")
    result = invoke("sanitize", str(source), "--policy", "nope")
    assert result.exit_code == 1


def test_render(invoke, tmp_path):
    page = tmp_path / "page.yaml"
    page.write_text(
        "page:\n"
        "  title: Clinic\n"
        "blocks:\n"
        "  - type: text\n"
        "    data:\n"
        "      text: Hello **there**\n"
    )
    result = invoke("render", str(page))
    assert result.exit_code == 0
    assert result.output.startswith("<!doctype html>")
    assert "<strong>there</strong>" in result.output
    assert "<h1>Clinic</h1>" in result.output


def test_render_invalid_page(invoke, tmp_path):
    page = tmp_path / "page.yaml"
    page.write_text("blocks:\n  - data: {}\n")
    result = invoke("render", str(page))
    assert result.exit_code == 1


def test_missing_file(invoke, tmp_path):
    result = invoke("to-html", str(tmp_path / "nope.md"))
    assert result.exit_code == 1


def test_invalid_config(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("sanitizer_backend: lxml\n")
    result = runner.invoke(app, ["--config", str(bad), "inline", "x"])
    assert result.exit_code == 1


def test_config_show(config_file):
    result = runner.invoke(app, ["config", "show", "--path", str(config_file)])
    assert result.exit_code == 0
    assert "sanitizer_backend" in result.output
    assert "dom" in result.output
