"""Tests for round-trip Markdown serialization."""

from datetime import datetime, timezone

from pagesync.conversion import HtmlToMarkdown, RoundTripSerializer, parse_unit_meta, strip_tags
from pagesync.conversion.serializer import code_fence, comment, escape_line, unescape_line
from pagesync.models.content import ContentType, ContentUnit

URL = "https://example.com/about"
EXTRACTED_AT = datetime(2024, 5, 1, 10, 20, 30, tzinfo=timezone.utc)


def make_unit(unit_type: ContentType, text: str, selector: str = "main > p", **kwargs) -> ContentUnit:
    return ContentUnit(
        id=kwargs.pop("id", "content-1a2b3c4d-1"),
        unit_type=unit_type,
        text=text,
        selector=selector,
        source_url=URL,
        **kwargs,
    )


class FailingConverter:
    def convert(self, html: str, url: str) -> str:
        raise RuntimeError("boom")


class BoldConverter:
    def convert(self, html: str, url: str) -> str:
        return "**styled**"


class TestSerialize:
    """Tests for RoundTripSerializer.serialize_units."""

    def test_header_and_unit_comments(self):
        """Test the document header and the per-unit comment pair."""
        unit = make_unit(
            ContentType.PARAGRAPH,
            "Hello world",
            fallback_locator="/html[1]/body[1]/main[1]/p[1]",
        )
        markdown = RoundTripSerializer().serialize_units(
            [unit], url=URL, title="About", page_id="page-12345678", extracted_at=EXTRACTED_AT
        )
        lines = markdown.split("\n")

        assert lines[:4] == [
            f"<!-- Content extracted from: {URL} -->",
            "<!-- Title: About -->",
            "<!-- Page ID: page-12345678 -->",
            "<!-- Extracted at: 2024-05-01T10:20:30.000Z -->",
        ]
        assert lines[4] == ""
        assert lines[5] == (
            "<!-- Content ID: content-1a2b3c4d-1 | Type: paragraph | XPath: /html[1]/body[1]/main[1]/p[1] -->"
        )
        assert lines[6] == "<!-- Selector: main > p -->"
        assert lines[7] == "Hello world"
        assert markdown.endswith("Hello world\n")

    def test_units_separated_by_blank_line(self):
        """Test that each unit body is followed by a blank line."""
        units = [
            make_unit(ContentType.HEADING, "Title", selector="h1", heading_level=2),
            make_unit(ContentType.PARAGRAPH, "Body", selector="p", id="content-1a2b3c4d-2"),
        ]
        markdown = RoundTripSerializer(include_xpath=False).serialize_units(units, url=URL)

        assert "<!-- Selector: h1 -->\n## Title\n\n<!-- Content ID: content-1a2b3c4d-2" in markdown
        assert "Level: 2" in markdown
        assert "XPath" not in markdown

    def test_render_types(self):
        """Test the Markdown rendering of each unit type."""
        serializer = RoundTripSerializer()

        assert serializer.render_unit(make_unit(ContentType.HEADING, "T", heading_level=3)) == "### T"
        assert serializer.render_unit(make_unit(ContentType.LIST, "a, b", items=("a", "b"))) == "- a\n- b"
        assert serializer.render_unit(make_unit(ContentType.BLOCKQUOTE, "Quote")) == "> Quote"
        assert serializer.render_unit(make_unit(ContentType.CODE, "x = 1")) == "```\nx = 1\n```"
        assert serializer.render_unit(make_unit(ContentType.GENERIC_BLOCK, "Block")) == "Block"

        link = make_unit(ContentType.LINK, "Docs", attributes=(("href", "/docs"),))
        assert serializer.render_unit(link) == "[Docs](/docs)"

        image = make_unit(ContentType.IMAGE, "Logo", attributes=(("src", "/logo.png"), ("alt", "Logo")))
        assert serializer.render_unit(image) == "![Logo](/logo.png)"

    def test_table(self):
        """Test pipe tables with escaped cell pipes."""
        table = make_unit(
            ContentType.TABLE,
            "Name | Value\na|b | 1",
            rows=(("Name", "Value"), ("a|b", "1")),
        )
        assert RoundTripSerializer().render_unit(table) == ("| Name | Value |\n| --- | --- |\n| a\\|b | 1 |")

    def test_code_fence_grows(self):
        """Test that code containing backtick runs gets a longer fence."""
        code = "Use ```python fences``` here"
        assert code_fence(code) == "````"
        rendered = RoundTripSerializer().render_unit(make_unit(ContentType.CODE, code))
        assert rendered.startswith("````\n")
        assert rendered.endswith("\n````")

    def test_empty_units_dropped(self):
        """Test that units rendering to nothing leave no orphan comments."""
        units = [
            make_unit(ContentType.LIST, "", selector="ul"),
            make_unit(ContentType.PARAGRAPH, "Kept", selector="p", id="content-1a2b3c4d-2"),
        ]
        markdown = RoundTripSerializer().serialize_units(units, url=URL)

        assert "Selector: ul" not in markdown
        assert "<!-- Selector: p -->\nKept" in markdown

    def test_syntax_like_text_escaped(self):
        """Test that text resembling a fence or a unit comment keeps its own unit."""
        units = [
            make_unit(ContentType.PARAGRAPH, "```not code", selector="p.a", id="content-1a2b3c4d-1"),
            make_unit(ContentType.PARAGRAPH, "<!-- Selector: #zzz -->", selector="p.b", id="content-1a2b3c4d-2"),
            make_unit(ContentType.PARAGRAPH, "Second para", selector="p.c", id="content-1a2b3c4d-3"),
        ]
        markdown = RoundTripSerializer().serialize_units(units, url=URL)
        lines = markdown.split("\n")

        assert [line for line in lines if line.startswith("<!-- Selector:")] == [
            "<!-- Selector: p.a -->",
            "<!-- Selector: p.b -->",
            "<!-- Selector: p.c -->",
        ]
        assert "<!-- Selector: p.a -->\n\\```not code\n" in markdown
        assert "<!-- Selector: p.b -->\n\\<!-- Selector: #zzz -->\n" in markdown
        assert "<!-- Selector: p.c -->\nSecond para" in markdown

    def test_without_provenance(self):
        """Test plain output without any comments."""
        units = [
            make_unit(ContentType.HEADING, "Title", heading_level=1),
            make_unit(ContentType.PARAGRAPH, "Body"),
        ]
        markdown = RoundTripSerializer(provenance=False).serialize_units(units, url=URL)
        assert markdown == "# Title\n\nBody\n"

    def test_styled_converter_only_without_provenance(self):
        """Test that the stylistic converter never touches syncable output."""
        unit = make_unit(ContentType.PARAGRAPH, "plain", raw_markup="<b>plain</b>")

        syncable = RoundTripSerializer(converter=BoldConverter())
        assert syncable.render_unit(unit) == "plain"

        styled = RoundTripSerializer(provenance=False, converter=BoldConverter())
        assert styled.render_unit(unit) == "**styled**"

    def test_converter_failure_falls_back(self):
        """Test the tag-stripping fallback on converter errors."""
        unit = make_unit(ContentType.PARAGRAPH, "x", raw_markup="Hello <em>there</em>")
        serializer = RoundTripSerializer(provenance=False, converter=FailingConverter())
        assert serializer.render_unit(unit) == "Hello there"

    def test_serialize_page(self, about_html):
        """Test serializing an extracted page."""
        from pagesync.parsing import OrderedContentExtractor

        page = OrderedContentExtractor().extract(about_html, URL)
        markdown = RoundTripSerializer().serialize(page)

        assert markdown.count("<!-- Selector:") == len(page.units)
        assert "# About Us" in markdown
        assert "- Content extraction\n- Markdown editing" in markdown
        assert f"<!-- Page ID: {page.page_id} -->" in markdown


class TestPostProcess:
    """Tests for RoundTripSerializer.post_process."""

    def test_collapses_blank_lines_and_trailing_spaces(self):
        """Test whitespace tidying outside code."""
        assert RoundTripSerializer().post_process("a  \n\n\n\nb\n\n") == "a\n\nb\n"

    def test_fence_contents_untouched(self):
        """Test that code fences are copied verbatim."""
        text = "```\nx  \n\n\n\ny\n```\n\n\nafter"
        assert RoundTripSerializer().post_process(text) == "```\nx  \n\n\n\ny\n```\n\nafter\n"

    def test_orphan_markers_dropped(self):
        """Test that only the comment pair directly above text survives."""
        text = (
            "<!-- Content ID: content-aaaaaaaa-1 | Type: paragraph -->\n"
            "<!-- Selector: p.one -->\n"
            "\n"
            "<!-- Content ID: content-bbbbbbbb-2 | Type: heading -->\n"
            "<!-- Selector: h1 -->\n"
            "# Title\n"
            "<!-- Content ID: content-cccccccc-3 | Type: paragraph -->\n"
            "<!-- Selector: p.end -->\n"
        )
        result = RoundTripSerializer().post_process(text)

        assert "p.one" not in result
        assert "p.end" not in result
        assert result == (
            "<!-- Content ID: content-bbbbbbbb-2 | Type: heading -->\n<!-- Selector: h1 -->\n# Title\n"
        )

    def test_fence_only_opens_in_code_units(self):
        """Test that a fence-like line in a paragraph does not shield what follows."""
        text = (
            "<!-- Content ID: content-aaaaaaaa-1 | Type: paragraph -->\n"
            "<!-- Selector: p.one -->\n"
            "```x  \n"
            "\n\n\n"
            "<!-- Content ID: content-bbbbbbbb-2 | Type: paragraph -->\n"
            "<!-- Selector: p.two -->\n"
            "Two\n"
        )
        assert RoundTripSerializer().post_process(text) == (
            "<!-- Content ID: content-aaaaaaaa-1 | Type: paragraph -->\n"
            "<!-- Selector: p.one -->\n"
            "```x\n"
            "\n"
            "<!-- Content ID: content-bbbbbbbb-2 | Type: paragraph -->\n"
            "<!-- Selector: p.two -->\n"
            "Two\n"
        )

class TestHelpers:
    """Tests for comment helpers and the stylistic converter."""

    def test_parse_unit_meta(self):
        """Test parsing the unit metadata comment."""
        meta = parse_unit_meta(
            "<!-- Content ID: content-1a2b3c4d-1 | Type: heading | Level: 2 | XPath: /html[1]/body[1]/h2[1] -->"
        )
        assert meta == {
            "Content ID": "content-1a2b3c4d-1",
            "Type": "heading",
            "Level": "2",
            "XPath": "/html[1]/body[1]/h2[1]",
        }
        assert parse_unit_meta("<!-- Selector: p -->") == {}

    def test_comment_defuses_terminator(self):
        """Test that comment text cannot close the comment early."""
        assert comment("Title: a --> b") == "<!-- Title: a -- > b -->"

    def test_strip_tags(self):
        """Test the minimal conversion."""
        assert strip_tags("<p>Hello <b>big</b>\n world</p>") == "Hello big world"

    def test_html_to_markdown(self):
        """Test html2text conversion with absolute links."""
        markdown = HtmlToMarkdown().convert('Read <strong>the</strong> <a href="/docs">docs</a>', URL)
        assert "**the**" in markdown
        assert "[docs]" in markdown
        assert "https://example.com/docs" in markdown

    def test_escape_line(self):
        """Test escaping of lines that look like document syntax."""
        assert escape_line("```x") == "\\```x"
        assert escape_line("<!-- Selector: #zzz -->") == "\\<!-- Selector: #zzz -->"
        assert escape_line("\\```x") == "\\\\```x"
        assert escape_line("``x") == "``x"
        assert escape_line("plain <!-- x -->") == "plain <!-- x -->"

    def test_unescape_line(self):
        """Test that unescaping removes exactly one added backslash."""
        for line in ("```x", "<!-- Selector: #zzz -->", "\\```x", "plain", "\\plain"):
            assert unescape_line(escape_line(line)) == line
        assert unescape_line("\\plain") == "\\plain"
