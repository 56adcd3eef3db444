"""Tests for the Markdown <-> HTML converter."""

from __future__ import annotations

import logging

import pytest

from carecms.content.converter import MarkdownConverter, normalize_legacy_text, render_text
from carecms.core.models import MarkdownConfig


class TestToHtml:

    def test_emphasis(self, converter):
        html = converter.to_html("**bold** and *italic*")
        assert "<strong>bold</strong>" in html
        assert "<em>italic</em>" in html

    def test_empty(self, converter):
        assert converter.to_html("") == ""

    def test_safe_link_kept(self, converter):
        html = converter.to_html("[site](https://example.com)")
        assert '<a href="https://example.com">site</a>' in html

    @pytest.mark.parametrize("source", [
        "[x](javascript:alert(1))",
        "[x](JavaScript:alert(1))",
        "[x](vbscript:msgbox(1))",
        "[x](file:///etc/passwd)",
        "[x](data:text/html;base64,PHNjcmlwdD4=)",
        "[x](&#106;avascript:alert(1))",
    ])
    def test_unsafe_links_inert(self, converter, source):
        html = converter.to_html(source)
        assert "href" not in html
        assert "javascript:" not in html.lower()
        assert ">x</a>" in html

    def test_unsafe_image_inert(self, converter):
        html = converter.to_html("![pic](data:image/png;base64,AAAA)")
        assert "data:" not in html
        assert 'alt="pic"' in html

    def test_raw_html_block_escaped(self, converter):
        html = converter.to_html("<script>alert(1)</script>")
        assert "<script" not in html
        assert "&lt;script&gt;" in html

    def test_inline_html_escaped(self, converter):
        html = converter.to_html('Hello <img src=x onerror="alert(1)"> there')
        assert "<img" not in html
        assert "&lt;img" in html

    def test_fenced_code(self, converter):
        html = converter.to_html("```\nx = 1\n```")
        assert "<pre><code>x = 1" in html

    def test_blockquote_nesting_capped(self, converter):
        html = converter.to_html(">" * 50 + " deep")
        assert html.count("<blockquote>") == 10
        assert "deep" in html

    def test_custom_nesting_ceiling(self):
        converter = MarkdownConverter(MarkdownConfig(max_nesting=3))
        html = converter.to_html("> > > > > > five")
        assert html.count("<blockquote>") == 3

    def test_list_nesting_bounded(self, converter):
        html = converter.to_html("- " * 40 + "x")
        assert html.count("<ul>") <= 10

    def test_deep_indentation_bounded(self, converter):
        html = converter.to_html(" " * 5000 + "x")
        assert "x" in html
        assert len(html) < 200

    def test_nesting_cap_logs_warning(self, converter, caplog):
        with caplog.at_level(logging.WARNING, logger="carecms.content.converter"):
            converter.to_html(">" * 20 + " deep")
        assert "nesting" in caplog.text

    def test_input_truncated(self, caplog):
        converter = MarkdownConverter(MarkdownConfig(max_input_chars=10))
        with caplog.at_level(logging.WARNING, logger="carecms.content.converter"):
            html = converter.to_html("a" * 50)
        assert html == "<p>aaaaaaaaaa</p>"
        assert "truncated" in caplog.text

    def test_soft_breaks(self, converter):
        assert "<br" not in converter.to_html("a\nb")
        converter = MarkdownConverter(MarkdownConfig(soft_break_as_br=True))
        assert "a<br>\nb" in converter.to_html("a\nb")

    def test_unsafe_extension_rejected(self):
        with pytest.raises(ValueError):
            MarkdownConfig(extensions=["extra"])
        with pytest.raises(ValueError):
            MarkdownConfig(extensions=["markdown.extensions.attr_list"])


class TestToMarkdown:

    @pytest.mark.parametrize("html,expected", [
        ("<p>one</p><p>two</p>", "one\n\ntwo"),
        ("<p>a<br>b</p>", "a\nb"),
        ("<strong>x</strong> <em>y</em>", "**x** _y_"),
        ("<b>x</b> <i>y</i>", "**x** _y_"),
        ("<s>gone</s> <del>old</del>", "~~gone~~ ~~old~~"),
        ("<u>under</u>", "<u>under</u>"),
        ('<a href="https://x.org">X</a>', "[X](https://x.org)"),
        ('<a href="https://x.org" title="T">X</a>', '[X](https://x.org "T")'),
        ("<a>bare</a>", "bare"),
        ("<h3>Title</h3>", "### Title"),
        ("<ul><li>a</li><li>b</li></ul>", "- a\n- b"),
        ("<ol><li>a</li><li>b</li></ol>", "1. a\n2. b"),
        ("<p>use <code>x()</code></p>", "use `x()`"),
        ('<pre><code class="language-py">x = 1\n</code></pre>', "```py\nx = 1\n```"),
        ("<blockquote><p>q</p></blockquote>", "> q"),
        ('<img src="a.png" alt="A">', "![A](a.png)"),
        ("<div><span>t</span></div>", "t"),
        ("<p>a</p>\n\n\n\n<p>b</p>", "a\n\nb"),
    ])
    def test_conversion(self, converter, html, expected):
        assert converter.to_markdown(html) == expected

    def test_empty(self, converter):
        assert converter.to_markdown("") == ""

    def test_nested_list(self, converter):
        html = "<ul>\n<li>a<ul>\n<li>b</li>\n</ul>\n</li>\n</ul>"
        assert converter.to_markdown(html) == "- a\n  - b"

    def test_round_trip(self, converter):
        source = "## Heading\n\n**Bold** text with [link](https://example.com)"
        result = converter.to_markdown(converter.to_html(source))
        assert "## Heading" in result
        assert "**Bold**" in result
        assert "[link](https://example.com)" in result
        assert result == source

    def test_link_label_brackets_escaped(self, converter):
        html = '<a href="https://x.org/a b(1)">see [1]</a>'
        assert converter.to_markdown(html) == "[see \\[1\\]](https://x.org/a%20b%281%29)"

    def test_escaped_link_parses_back(self, converter):
        markdown = converter.to_markdown('<p><a href="https://x.org/a b(1)">see [1]</a></p>')
        assert '<a href="https://x.org/a%20b%281%29">see [1]</a>' in converter.to_html(markdown)


class TestLegacyText:

    def test_normalize(self):
        assert normalize_legacy_text("a<br>b <strong>c</strong> <I>d</I>") == "a\n\nb **c** _d_"

    def test_br_variants(self):
        assert normalize_legacy_text("a<br/>b<BR />c") == "a\n\nb\n\nc"

    def test_single_paragraph_unwrapped(self, converter):
        assert render_text("Plain text", converter) == "Plain text"

    def test_multiple_paragraphs_kept(self, converter):
        html = render_text("Line1<br>Line2", converter)
        assert "<p>Line1</p>" in html
        assert "<p>Line2</p>" in html

    def test_empty(self, converter):
        assert render_text("", converter) == ""

    def test_paragraph_next_to_list_not_unwrapped(self, converter):
        html = render_text("Intro\n\n- one\n- two\n\nOutro", converter)
        assert html.startswith("<p>Intro</p>")
        assert html.endswith("<p>Outro</p>")

    def test_lone_list_kept(self, converter):
        assert render_text("- one", converter) == "<ul>\n<li>one</li>\n</ul>"
