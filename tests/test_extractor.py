"""Tests for ordered content extraction."""

import pytest
from bs4 import BeautifulSoup

from pagesync.exceptions import NoContentError
from pagesync.metadata import IdGenerator
from pagesync.models.config import ContentSelectionConfig
from pagesync.models.content import ContentType
from pagesync.parsing import OrderedContentExtractor, build_hierarchy

URL = "https://example.com/about"


def page_of(body: str, title: str = "") -> str:
    head = f"<head><title>{title}</title></head>" if title else ""
    return f"<html>{head}<body>{body}</body></html>"


class TestExtract:
    """Tests for OrderedContentExtractor.extract."""

    def test_units_in_document_order(self, about_html):
        """Test unit types and order on a typical page."""
        page = OrderedContentExtractor().extract(about_html, URL)

        assert [unit.unit_type for unit in page.units] == [
            ContentType.HEADING,
            ContentType.PARAGRAPH,
            ContentType.HEADING,
            ContentType.LIST,
            ContentType.CODE,
            ContentType.PARAGRAPH,
            ContentType.PARAGRAPH,
        ]
        assert page.title == "About Us"
        assert page.url == URL

    def test_heading_scenario(self, about_html):
        """Test heading level, text and selector of the first heading."""
        page = OrderedContentExtractor().extract(about_html, URL)
        heading = page.units[0]

        assert heading.text == "About Us"
        assert heading.heading_level == 1
        assert heading.selector == "html > body > main > h1"
        assert heading.fallback_locator == "/html[1]/body[1]/main[1]/h1[1]"
        assert heading.source_url == URL

    def test_navigation_and_footer_excluded(self, about_html):
        """Test that nothing outside the content region is extracted."""
        page = OrderedContentExtractor().extract(about_html, URL)
        texts = " ".join(unit.text for unit in page.units)

        assert "Home" not in texts
        assert "Copyright" not in texts

    def test_navigation_inside_region_skipped(self):
        """Test that navigation nested in the region is skipped."""
        html = page_of(
            "<main>"
            '<div class="menu"><p>Menu entry text</p></div>'
            "<nav><p>Nav entry text</p></nav>"
            "<p>Actual content of the page, long enough to matter for scoring purposes.</p>"
            "</main>"
        )
        page = OrderedContentExtractor().extract(html, URL)
        assert [unit.text for unit in page.units] == [
            "Actual content of the page, long enough to matter for scoring purposes."
        ]

    def test_include_navigation(self):
        """Test that keyword navigation is kept when requested; exclusions still apply."""
        html = page_of(
            "<main>"
            '<div class="menu"><p>Menu entry text</p></div>'
            "<nav><p>Nav entry text</p></nav>"
            "<p>Actual content of the page, long enough to matter for scoring purposes.</p>"
            "</main>"
        )
        extractor = OrderedContentExtractor(ContentSelectionConfig(include_navigation=True))
        texts = [unit.text for unit in extractor.extract(html, URL).units]

        assert "Menu entry text" in texts
        assert "Nav entry text" not in texts

    def test_duplicate_read_more(self, about_html):
        """Test that identical paragraphs get distinct IDs and selectors."""
        page = OrderedContentExtractor().extract(about_html, URL)
        first, second = [unit for unit in page.units if unit.text == "Read more"]

        assert first.id != second.id
        assert first.id.rsplit("-", 1)[0] == second.id.rsplit("-", 1)[0]
        assert first.selector != second.selector

        soup = BeautifulSoup(about_html, "html.parser")
        assert len(soup.select(first.selector)) == 1
        assert len(soup.select(second.selector)) == 1

    def test_every_selector_is_unique(self, about_html, contact_html):
        """Test that each unit's selector resolves to exactly one element."""
        for html in (about_html, contact_html):
            soup = BeautifulSoup(html, "html.parser")
            for unit in OrderedContentExtractor().extract(html, URL).units:
                assert len(soup.select(unit.selector)) == 1, unit.selector

    def test_list_table_and_code(self, about_html, contact_html):
        """Test structured payloads of lists, tables and code."""
        about = OrderedContentExtractor().extract(about_html, URL)
        list_unit = next(unit for unit in about.units if unit.unit_type == ContentType.LIST)
        code_unit = next(unit for unit in about.units if unit.unit_type == ContentType.CODE)

        assert list_unit.items == ("Content extraction", "Markdown editing")
        assert list_unit.text == "Content extraction, Markdown editing"
        assert code_unit.text == "pagesync extract https://example.com"

        contact = OrderedContentExtractor().extract(contact_html, URL)
        table = next(unit for unit in contact.units if unit.unit_type == ContentType.TABLE)
        quote = next(unit for unit in contact.units if unit.unit_type == ContentType.BLOCKQUOTE)

        assert table.rows == (("Office", "City"), ("HQ", "Berlin"))
        assert quote.text == "Fast and friendly support."

    def test_code_keeps_indentation(self):
        """Test that code text is not whitespace-collapsed."""
        html = page_of("<main><h1>Example</h1><pre>def f():\n    return 1\n</pre></main>")
        code = OrderedContentExtractor().extract(html, URL).units[1]
        assert code.text == "def f():\n    return 1"

    def test_generic_block(self):
        """Test that text-only containers become generic blocks."""
        long_text = "A container with plenty of text but no paragraph markup around it at all."
        html = page_of(f"<main><h1>T</h1><div>{long_text}</div><div>short</div></main>")
        units = OrderedContentExtractor().extract(html, URL).units

        assert [unit.unit_type for unit in units] == [ContentType.HEADING, ContentType.GENERIC_BLOCK]
        assert units[1].text == long_text

    def test_links_and_images(self):
        """Test optional standalone link and image units."""
        html = page_of('<main><h1>T</h1><a href="/docs">Docs</a><img src="/logo.png" alt="Logo"><a>No href</a></main>')
        selection = ContentSelectionConfig(extract_links=True, extract_images=True)
        units = OrderedContentExtractor(selection).extract(html, URL).units

        assert [unit.unit_type for unit in units] == [ContentType.HEADING, ContentType.LINK, ContentType.IMAGE]
        assert units[1].attribute("href") == "/docs"
        assert units[2].text == "Logo"
        assert units[2].attribute("src") == "/logo.png"

    def test_links_ignored_by_default(self):
        """Test that standalone links are not units unless enabled."""
        html = page_of('<main><h1>T</h1><a href="/docs">Docs</a></main>')
        units = OrderedContentExtractor().extract(html, URL).units
        assert [unit.unit_type for unit in units] == [ContentType.HEADING]

    def test_scripts_removed(self):
        """Test that script contents never become units."""
        html = page_of("<main><script>var x = 1;</script><p>Visible</p></main>")
        units = OrderedContentExtractor().extract(html, URL).units
        assert [unit.text for unit in units] == ["Visible"]

    def test_no_content(self):
        """Test that an empty page raises NoContentError."""
        with pytest.raises(NoContentError):
            OrderedContentExtractor().extract(page_of("<main></main>"), URL)

    def test_title_falls_back_to_h1(self):
        """Test title resolution without a <title>."""
        page = OrderedContentExtractor().extract(page_of("<main><h1>Heading</h1></main>"), URL)
        assert page.title == "Heading"

    def test_shared_id_generator(self, about_html):
        """Test that IDs keep counting across pages of one run."""
        ids = IdGenerator()
        extractor = OrderedContentExtractor(ids=ids)
        first = extractor.extract(about_html, URL)
        second = extractor.extract(about_html, URL)

        all_ids = [unit.id for unit in first.units + second.units]
        assert len(set(all_ids)) == len(all_ids)
        assert ids.counter == len(all_ids)

    def test_raw_markup_kept(self):
        """Test that inner HTML is recorded for stylistic conversion."""
        html = page_of("<main><p>Hello <strong>world</strong></p></main>")
        unit = OrderedContentExtractor().extract(html, URL).units[0]

        assert unit.raw_markup == "Hello <strong>world</strong>"
        assert unit.text == "Hello world"


class TestHierarchy:
    """Tests for build_hierarchy."""

    def test_outline(self):
        """Test heading nesting and orphan collection."""
        html = page_of(
            "<main><p>Intro</p><h1>One</h1><p>A</p><h2>Sub</h2><p>B</p><h1>Two</h1></main>"
        )
        roots = OrderedContentExtractor().extract(html, URL).hierarchy

        assert len(roots) == 3
        orphans, one, two = roots
        assert orphans.is_synthetic
        assert [child.unit.text for child in orphans.children] == ["Intro"]
        assert one.unit.text == "One"
        assert [child.unit.text for child in one.children] == ["A", "Sub"]
        assert [child.unit.text for child in one.children[1].children] == ["B"]
        assert two.unit.text == "Two"
        assert two.children == []

    def test_walk(self):
        """Test depth-first traversal."""
        html = page_of("<main><h1>One</h1><h2>Sub</h2><p>B</p></main>")
        page = OrderedContentExtractor().extract(html, URL)
        walked = [node.unit.text for root in build_hierarchy(page.units) for node in root.walk()]
        assert walked == ["One", "Sub", "B"]
