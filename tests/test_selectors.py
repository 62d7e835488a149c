"""Tests for selector and XPath derivation."""

import pytest
from bs4 import BeautifulSoup

from pagesync.metadata import SelectorBuilder, resolve_xpath, select_safe
from pagesync.models.config import SelectorConfig


def soup_of(body: str) -> BeautifulSoup:
    return BeautifulSoup(f"<html><body>{body}</body></html>", "html.parser")


class TestStrategies:
    """Tests for individual selector strategies."""

    def test_id_wins(self):
        """Test that a valid ID produces an ID selector."""
        soup = soup_of('<main><p id="intro" class="lead">Hi</p></main>')
        candidate = SelectorBuilder().build(soup.find("p"))

        assert candidate.selector == "#intro"
        assert candidate.strategy == "id"
        assert candidate.reliability == 0.95

    def test_invalid_id_ignored(self):
        """Test that IDs starting with a digit are not used."""
        soup = soup_of('<main><p id="1st">Hi</p></main>')
        candidate = SelectorBuilder().build(soup.find("p"))
        assert candidate.strategy != "id"
        assert "#1st" not in candidate.selector

    def test_data_attribute(self):
        """Test that stable data attributes are preferred over classes."""
        soup = soup_of('<main><div data-testid="hero" class="banner">Hi</div></main>')
        candidate = SelectorBuilder().build(soup.find("div"))

        assert candidate.selector == '[data-testid="hero"]'
        assert candidate.reliability == pytest.approx(0.9)

    def test_role_beats_path(self):
        """Test that an ARIA role outranks the structural path."""
        soup = soup_of('<main><div role="note">Hi</div></main>')
        candidate = SelectorBuilder().build(soup.find("div"))

        assert candidate.selector == '[role="note"]'
        assert candidate.strategy == "role"

    def test_unique_class(self):
        """Test a rare, non-generic class."""
        soup = soup_of('<main><p class="lead">Hi</p><p>There</p></main>')
        candidate = SelectorBuilder().build(soup.find("p"))

        assert candidate.selector == "p.lead"
        assert candidate.strategy == "class"

    def test_generic_class_ignored(self):
        """Test that layout classes never identify an element."""
        soup = soup_of('<main><p class="container">Hi</p></main>')
        candidate = SelectorBuilder().build(soup.find("p"))
        assert candidate.strategy == "path"

    def test_frequent_class_ignored(self):
        """Test that classes used more often than the limit are not unique."""
        soup = soup_of("<main>" + '<p class="item">x</p>' * 4 + "</main>")
        candidate = SelectorBuilder().build(soup.find("p"))
        assert candidate.strategy == "path"

        relaxed = SelectorBuilder(SelectorConfig(unique_class_limit=5)).build(soup.find("p"))
        assert relaxed.selector == "p.item"

    def test_path_uses_nth_of_type(self):
        """Test the structural path with same-tag siblings."""
        soup = soup_of("<main><h1>T</h1><p>A</p><p>B</p></main>")
        second = soup.find_all("p")[1]
        candidate = SelectorBuilder().build(second)

        assert candidate.selector == "html > body > main > p:nth-of-type(2)"
        assert candidate.xpath == "/html[1]/body[1]/main[1]/p[2]"
        assert soup.select(candidate.selector) == [second]

    def test_path_anchors_at_ancestor_id(self):
        """Test that the path stops at the nearest ancestor with an ID."""
        soup = soup_of('<div id="box"><p>A</p></div>')
        candidate = SelectorBuilder().build(soup.find("p"))
        assert candidate.selector == "#box > p"

    def test_xpath_always_attached(self):
        """Test that every candidate carries an XPath."""
        soup = soup_of('<main><p id="intro">Hi</p></main>')
        candidate = SelectorBuilder().build(soup.find("p"))
        assert candidate.xpath == "/html[1]/body[1]/main[1]/p[1]"


class TestUniqueness:
    """Tests for contextual escalation and uniqueness checks."""

    def test_contextual_escalation(self):
        """Test that a shared class is disambiguated by ancestor context."""
        soup = soup_of('<section id="a"><p class="note">One</p></section><section id="b"><p class="note">Two</p></section>')
        target = soup.find_all("p")[1]
        candidate = SelectorBuilder().build_unique(target, soup)

        assert soup.select(candidate.selector) == [target]
        assert candidate.strategy == "contextual"
        assert "#b > p.note" in candidate.selector

    def test_contextual_keeps_strong_selectors(self):
        """Test that reliable selectors are not extended."""
        soup = soup_of('<main><p id="intro">Hi</p></main>')
        candidate = SelectorBuilder().build_contextual(soup.find("p"))
        assert candidate.selector == "#intro"

    def test_contextual_reliability_is_capped(self):
        """Test the contextual reliability bonus."""
        soup = soup_of('<main><p class="lead">Hi</p></main>')
        candidate = SelectorBuilder().build_contextual(soup.find("p"))

        assert candidate.strategy == "contextual"
        assert candidate.reliability == pytest.approx(0.9)
        assert candidate.selector.endswith("> p.lead")

    def test_duplicate_ids_fall_back_to_xpath(self):
        """Test that duplicate IDs leave the XPath as the only unique locator."""
        soup = soup_of('<p id="dup">One</p><p id="dup">Two</p>')
        target = soup.find_all("p")[1]
        candidate = SelectorBuilder().build_unique(target, soup)

        assert not SelectorBuilder().is_unique(candidate.selector, soup)
        assert resolve_xpath(soup, candidate.xpath) is target

    def test_verification_can_be_disabled(self):
        """Test that build_unique returns the best strategy when not verifying."""
        soup = soup_of('<p class="note">One</p><p class="note">Two</p>')
        builder = SelectorBuilder(SelectorConfig(verify_uniqueness=False))
        assert builder.build_unique(soup.find_all("p")[1], soup).selector == "p.note"

    def test_is_unique(self):
        """Test is_unique counts matches."""
        soup = soup_of("<p>A</p><p>B</p><h1>T</h1>")
        builder = SelectorBuilder()
        assert builder.is_unique("h1", soup)
        assert not builder.is_unique("p", soup)
        assert not builder.is_unique("h2", soup)

    def test_is_valid_id(self):
        """Test ID validation."""
        assert SelectorBuilder.is_valid_id("intro")
        assert SelectorBuilder.is_valid_id("main-content_2")
        assert not SelectorBuilder.is_valid_id("2col")
        assert not SelectorBuilder.is_valid_id("has space")


class TestHelpers:
    """Tests for resolve_xpath and select_safe."""

    def test_resolve_xpath(self):
        """Test resolving builder-style XPaths."""
        soup = soup_of("<main><p>A</p><p>B</p></main>")
        assert resolve_xpath(soup, "/html[1]/body[1]/main[1]/p[2]") is soup.find_all("p")[1]

    def test_resolve_xpath_out_of_range(self):
        """Test that missing positions resolve to None."""
        soup = soup_of("<main><p>A</p></main>")
        assert resolve_xpath(soup, "/html[1]/body[1]/main[1]/p[3]") is None
        assert resolve_xpath(soup, "//p") is None
        assert resolve_xpath(soup, "html/body") is None

    def test_select_safe_invalid_selector(self):
        """Test that invalid CSS matches nothing instead of raising."""
        soup = soup_of("<p>A</p>")
        assert select_safe(soup, "p[") == []
        assert len(select_safe(soup, "p")) == 1
