"""CSS selector and XPath derivation for extracted elements."""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Callable, Optional

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from ..models.config import SelectorConfig
from ..models.content import SelectorCandidate

logger = logging.getLogger(__name__)

_ID_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")
_CLASS_RE = re.compile(r"^-?[_A-Za-z][_A-Za-z0-9-]*$")
_XPATH_SEGMENT_RE = re.compile(r"^([A-Za-z][A-Za-z0-9-]*)(?:\[(\d+)\])?$")

SelectorStrategy = Callable[[Tag], Optional[SelectorCandidate]]


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def document_root(element: Tag) -> Tag:
    """Topmost ancestor of an element (the BeautifulSoup object when attached)."""
    root = element
    for parent in element.parents:
        root = parent
    return root


def sibling_position(element: Tag) -> tuple[int, int]:
    """1-based index of the element among same-tag siblings, and their count."""
    parent = element.parent
    if parent is None:
        return 1, 1
    siblings = parent.find_all(element.name, recursive=False)
    for index, sibling in enumerate(siblings, start=1):
        if sibling is element:
            return index, len(siblings)
    return 1, len(siblings)


def select_safe(root: Tag, selector: str, limit: int = 0) -> list[Tag]:
    """Run a CSS selector, treating invalid syntax as no match."""
    try:
        return list(root.select(selector, limit=limit))
    except (SelectorSyntaxError, ValueError) as e:
        logger.debug(f"Invalid selector {selector!r}: {e}")
        return []


def resolve_xpath(root: Tag, xpath: str) -> Optional[Tag]:
    """
    Resolve an absolute ``/tag[n]/tag[n]`` path produced by the builder.

    Only the subset of XPath the builder emits is supported; anything else
    resolves to None.
    """
    if not xpath.startswith("/"):
        return None

    current: Tag = root
    for segment in xpath.strip("/").split("/"):
        match = _XPATH_SEGMENT_RE.match(segment)
        if not match:
            return None
        tag, index = match.group(1).lower(), int(match.group(2) or 1)
        children = current.find_all(tag, recursive=False)
        if index < 1 or index > len(children):
            return None
        current = children[index - 1]
    return current if current is not root else None


class SelectorBuilder:
    """
    Derives a CSS selector (plus an XPath fallback) for a DOM element.

    Strategies run in priority order: ID, data attribute / ARIA role, unique
    classes, structural path. Each returns a ``SelectorCandidate`` or None;
    the highest-reliability candidate wins and ties go to the earlier
    strategy. The structural path always produces a selector, so ``build``
    never returns an empty string.

    Example:
        builder = SelectorBuilder()
        candidate = builder.build(soup.select_one("main p"))
        candidate.selector      # 'html > body > main > p:nth-of-type(1)'
        candidate.xpath         # '/html[1]/body[1]/main[1]/p[1]'
    """

    def __init__(self, config: Optional[SelectorConfig] = None):
        self._config = config or SelectorConfig()
        self._generic_classes = {name.lower() for name in self._config.generic_classes}
        self._strategies: tuple[SelectorStrategy, ...] = (
            self._id_strategy,
            self._attribute_strategy,
            self._class_strategy,
            self._path_strategy,
        )
        # (root, class counts) for the document last queried
        self._class_index: Optional[tuple[Tag, Counter[str]]] = None

    @staticmethod
    def is_valid_id(value: str) -> bool:
        """IDs must start with a letter and contain only letters, digits, '-' and '_'."""
        return bool(_ID_RE.match(value))

    def build(self, element: Tag) -> SelectorCandidate:
        """Return the most reliable selector candidate for an element."""
        best: Optional[SelectorCandidate] = None
        for strategy in self._strategies:
            candidate = strategy(element)
            if candidate is None or not candidate.selector:
                continue
            if best is None or candidate.reliability > best.reliability:
                best = candidate

        if best is None:  # pragma: no cover - the path strategy always answers
            best = self._path_strategy(element)

        if best.xpath is None:
            best = SelectorCandidate(
                selector=best.selector,
                specificity=best.specificity,
                reliability=best.reliability,
                xpath=self.build_xpath(element),
                strategy=best.strategy,
            )
        return best

    def build_contextual(self, element: Tag, levels: Optional[int] = None) -> SelectorCandidate:
        """
        Prepend ancestor selectors to a weak selector.

        Selectors at or above the contextual threshold are returned as-is.
        Structural paths are already anchored at the root and are never
        extended.
        """
        base = self.build(element)
        if base.reliability >= self._config.contextual_threshold or base.strategy == "path":
            return base

        if levels is None:
            levels = self._config.context_levels

        selector = base.selector
        specificity = base.specificity
        current = element
        for _ in range(levels):
            current = current.parent
            if current is None or isinstance(current, BeautifulSoup):
                break
            parent = self.build(current)
            selector = f"{parent.selector} > {selector}"
            specificity += parent.specificity
            if parent.strategy == "path":
                break

        return SelectorCandidate(
            selector=selector,
            specificity=specificity,
            reliability=min(self._config.max_reliability, base.reliability + 0.1),
            xpath=base.xpath,
            strategy="contextual",
        )

    def build_unique(self, element: Tag, root: Optional[Tag] = None) -> SelectorCandidate:
        """
        Build a selector and escalate it until it resolves to this element alone.

        Escalation order: best strategy, contextual selector, structural path.
        If even the path is ambiguous (duplicate IDs), the path is returned and
        reconciliation falls back to the XPath.
        """
        candidate = self.build(element)
        if not self._config.verify_uniqueness:
            return candidate

        if root is None:
            root = document_root(element)

        if self._resolves_to(candidate.selector, root, element):
            return candidate

        contextual = self.build_contextual(element)
        if contextual.selector != candidate.selector and self._resolves_to(contextual.selector, root, element):
            return contextual

        path = self._path_strategy(element)
        if not self._resolves_to(path.selector, root, element):
            logger.debug(f"Selector {path.selector!r} is not unique; relying on XPath {path.xpath!r}")
        return path

    def is_unique(self, selector: str, root: Tag) -> bool:
        """True if the selector matches exactly one element under root."""
        return len(select_safe(root, selector, limit=2)) == 1

    def build_xpath(self, element: Tag) -> str:
        """Absolute XPath using 1-based same-tag sibling indexes."""
        segments = []
        current: Optional[Tag] = element
        while current is not None and not isinstance(current, BeautifulSoup):
            index, _ = sibling_position(current)
            segments.append(f"{current.name}[{index}]")
            current = current.parent
        return "/" + "/".join(reversed(segments))

    def _resolves_to(self, selector: str, root: Tag, element: Tag) -> bool:
        matches = select_safe(root, selector, limit=2)
        return len(matches) == 1 and matches[0] is element

    def _id_strategy(self, element: Tag) -> Optional[SelectorCandidate]:
        element_id = element.get("id")
        if isinstance(element_id, str) and self.is_valid_id(element_id):
            return SelectorCandidate(
                selector=f"#{element_id}",
                specificity=100,
                reliability=self._config.id_reliability,
                strategy="id",
            )
        return None

    def _attribute_strategy(self, element: Tag) -> Optional[SelectorCandidate]:
        for attr in self._config.data_attributes:
            value = element.get(attr)
            if isinstance(value, str) and value.strip():
                return SelectorCandidate(
                    selector=f"[{attr}={_quote(value)}]",
                    specificity=10,
                    reliability=self._config.data_attribute_reliability,
                    strategy="attribute",
                )

        role = element.get("role")
        if isinstance(role, str) and role.strip():
            return SelectorCandidate(
                selector=f"[role={_quote(role)}]",
                specificity=10,
                reliability=self._config.role_reliability,
                strategy="role",
            )
        return None

    def _class_strategy(self, element: Tag) -> Optional[SelectorCandidate]:
        classes = [cls for cls in element.get("class") or [] if _CLASS_RE.match(cls)]
        if not classes:
            return None

        counts = self._class_counts(document_root(element))
        unique = [
            cls
            for cls in classes
            if cls.lower() not in self._generic_classes and counts[cls] <= self._config.unique_class_limit
        ]
        if not unique:
            return None

        return SelectorCandidate(
            selector=f"{element.name}.{'.'.join(unique)}",
            specificity=10 + len(unique),
            reliability=self._config.class_reliability,
            strategy="class",
        )

    def _path_strategy(self, element: Tag) -> SelectorCandidate:
        segments = []
        current: Optional[Tag] = element
        while current is not None and not isinstance(current, BeautifulSoup):
            segment, anchored = self._path_segment(current)
            segments.append(segment)
            if anchored:
                break
            current = current.parent

        return SelectorCandidate(
            selector=" > ".join(reversed(segments)),
            specificity=1,
            reliability=self._config.path_reliability,
            xpath=self.build_xpath(element),
            strategy="path",
        )

    def _path_segment(self, element: Tag) -> tuple[str, bool]:
        element_id = element.get("id")
        if isinstance(element_id, str) and self.is_valid_id(element_id):
            return f"#{element_id}", True

        segment = element.name
        classes = [cls for cls in element.get("class") or [] if _CLASS_RE.match(cls)]
        if classes:
            segment += f".{classes[0]}"

        index, count = sibling_position(element)
        if count > 1:
            segment += f":nth-of-type({index})"
        return segment, False

    def _class_counts(self, root: Tag) -> Counter[str]:
        if self._class_index is not None and self._class_index[0] is root:
            return self._class_index[1]

        counts: Counter[str] = Counter()
        for tag in root.find_all(class_=True):
            counts.update(set(tag.get("class") or []))
        self._class_index = (root, counts)
        return counts
