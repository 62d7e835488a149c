"""Main-content region scoring."""

import logging
from typing import Optional

import soupsieve as sv
from bs4 import BeautifulSoup, Tag

from ..exceptions import ConfigError
from ..models.config import ContentSelectionConfig, ScoringConfig
from ..models.content import ContentRegion, RegionType
from .text import element_text

logger = logging.getLogger(__name__)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


def _compile(selectors: list[str], label: str) -> list[tuple[str, sv.SoupSieve]]:
    compiled = []
    for selector in selectors:
        try:
            compiled.append((selector, sv.compile(selector)))
        except sv.SelectorSyntaxError as e:
            raise ConfigError(f"Invalid {label} selector {selector!r}: {e}") from e
    return compiled


def is_ancestor(ancestor: Tag, node: Tag) -> bool:
    """True if ``ancestor`` strictly contains ``node``."""
    return any(parent is ancestor for parent in node.parents)


class ContentRegionScorer:
    """
    Ranks candidate elements by how likely they are to be main content.

    Candidates are the elements matched by the configured content selectors.
    Each is scored from its tag semantics, text volume and structure, then
    penalized for looking like navigation, being link-heavy or being
    nearly empty. Overlapping candidates are resolved in favor of the
    higher score.

    Example:
        scorer = ContentRegionScorer()
        region = scorer.best_region(soup)
        print(region.region_type, region.score)
    """

    def __init__(
        self,
        selection: Optional[ContentSelectionConfig] = None,
        scoring: Optional[ScoringConfig] = None,
    ):
        """
        Initialize the scorer.

        Args:
            selection: Candidate/exclusion selectors and navigation keywords
            scoring: Weights and thresholds

        Raises:
            ConfigError: If a configured selector is not valid CSS
        """
        self._selection = selection or ContentSelectionConfig()
        self._scoring = scoring or ScoringConfig()
        self._content_selectors = _compile(self._selection.content_selectors, "content")
        self._exclude_selectors = _compile(self._selection.exclude_selectors, "exclude")
        self._keywords = [keyword.lower() for keyword in self._selection.navigation_keywords]

    def find_regions(self, soup: BeautifulSoup) -> list[ContentRegion]:
        """
        Return non-overlapping content regions, highest score first.

        Falls back to the body (or the whole fragment) when no candidate
        survives scoring.
        """
        candidates: list[ContentRegion] = []
        seen: set[int] = set()
        for selector, compiled in self._content_selectors:
            for element in compiled.select(soup):
                if id(element) in seen:
                    continue
                seen.add(id(element))
                score = self.score(element)
                if score <= 0:
                    logger.debug(f"Discarding zero-score candidate {element.name} ({selector})")
                    continue
                candidates.append(ContentRegion(element, score, self.region_type(element), selector))

        # sorted() is stable, so equal scores keep selector/document order
        candidates = sorted(candidates, key=lambda region: region.score, reverse=True)

        accepted: list[ContentRegion] = []
        for candidate in candidates:
            if any(self._overlaps(candidate.element, region.element) for region in accepted):
                continue
            accepted.append(candidate)
            if self._selection.max_regions and len(accepted) >= self._selection.max_regions:
                break

        if accepted:
            return accepted

        body = soup.find("body")
        root = body if isinstance(body, Tag) else soup
        logger.debug("No content region matched; falling back to document body")
        return [
            ContentRegion(
                element=root,
                score=max(0.0, self.score(root)),
                region_type=RegionType.GENERIC_BLOCK,
                matched_selector="body",
            )
        ]

    def best_region(self, soup: BeautifulSoup) -> ContentRegion:
        """Return the single highest-scoring region."""
        return self.find_regions(soup)[0]

    def score(self, element: Tag) -> float:
        """Heuristic main-content score, clamped at zero."""
        cfg = self._scoring
        weights = {
            RegionType.MAIN: cfg.main_weight,
            RegionType.ARTICLE: cfg.article_weight,
            RegionType.SECTION: cfg.section_weight,
            RegionType.GENERIC_BLOCK: cfg.generic_weight,
        }
        score = weights[self.region_type(element)]

        text_length = len(element_text(element))
        if text_length > cfg.long_text_length:
            score += cfg.long_text_bonus
        elif text_length > cfg.medium_text_length:
            score += cfg.medium_text_bonus
        elif text_length > cfg.short_text_length:
            score += cfg.short_text_bonus

        score += cfg.heading_weight * len(element.find_all(HEADING_TAGS))
        score += cfg.paragraph_weight * len(element.find_all("p"))

        if self.is_navigation(element):
            score -= cfg.navigation_penalty

        descendants = len(element.find_all(True))
        if descendants and len(element.find_all("a")) / descendants > cfg.link_density_threshold:
            score -= cfg.link_density_penalty

        if text_length < cfg.min_text_length:
            score -= cfg.min_text_penalty

        return max(0.0, score)

    def is_navigation(self, element: Tag) -> bool:
        """Navigation by tag, ARIA role, class/id keyword, or an exclusion selector."""
        if self.looks_like_navigation(element):
            return True
        return self.should_exclude(element)

    def looks_like_navigation(self, element: Tag) -> bool:
        """Tag, role and keyword part of the navigation heuristic."""
        if element.name == "nav" or element.get("role") == "navigation":
            return True

        tokens = [cls.lower() for cls in element.get("class") or []]
        element_id = element.get("id")
        if isinstance(element_id, str):
            tokens.append(element_id.lower())
        return any(keyword in token for token in tokens for keyword in self._keywords)

    def should_exclude(self, element: Tag) -> bool:
        """True if an exclusion selector matches the element."""
        return any(compiled.match(element) for _, compiled in self._exclude_selectors)

    @staticmethod
    def region_type(element: Tag) -> RegionType:
        if element.name == "main" or element.get("role") == "main":
            return RegionType.MAIN
        if element.name == "article":
            return RegionType.ARTICLE
        if element.name == "section":
            return RegionType.SECTION
        return RegionType.GENERIC_BLOCK

    @staticmethod
    def _overlaps(a: Tag, b: Tag) -> bool:
        return a is b or is_ancestor(a, b) or is_ancestor(b, a)
