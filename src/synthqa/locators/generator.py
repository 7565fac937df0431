"""
Selector Generator - Generate robust, multi-strategy selectors.

Given the target element of a user interaction, produce a ``Selector`` whose
strategies are ordered from most to least reliable:

1. ``data-testid`` attribute
2. unique ``id``
3. ``name`` attribute
4. CSS ancestor path (max 5 levels, ids preferred, hashed classes dropped)
5. visible text (buttons and links only, under 50 characters)

When nothing applies, an absolute XPath computed by sibling-index counting is
the only strategy. Generation is a pure function of the document.
"""

import re
from typing import List, Optional

from bs4 import Tag
import soupsieve

from synthqa.locators.dom import document_root, element_children, index_among, is_document, visible_text
from synthqa.locators.resolver import TEXT_TAGS, find_by_strategy
from synthqa.models.actions import ElementInfo, Selector, Strategy, StrategyKind

# Class names emitted by CSS-in-JS and CSS modules change between builds
GENERATED_CLASS = re.compile(
    r"^(?:css|jsx|sc|emotion|svelte)-"
    r"|__[A-Za-z0-9_-]{5,}$"
    r"|\d{4,}"
)


def is_generated_class(name: str) -> bool:
    """Whether a class name looks build-generated or hashed."""
    return bool(GENERATED_CLASS.search(name))


def quote_attribute(value: str) -> str:
    """Escape a value for use inside a double-quoted CSS attribute selector."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


class SelectorGenerator:
    """
    Generate ranked selectors for DOM elements.

    Every candidate except ``testid`` is checked against the document and
    kept only if it resolves back to the element, so resolving a freshly
    generated selector returns the same element.

    Example:
        >>> generator = SelectorGenerator()
        >>> selector = generator.generate(button_tag)
        >>> selector.primary.kind
        <StrategyKind.TESTID: 'testid'>
    """

    def __init__(self, max_css_depth: int = 5, max_text_length: int = 50):
        """
        Initialize the generator.

        Args:
            max_css_depth: Maximum number of levels in a CSS ancestor path
            max_text_length: Text strategies are only emitted below this length
        """
        self.max_css_depth = max_css_depth
        self.max_text_length = max_text_length

    def generate(self, element: Tag) -> Selector:
        """
        Generate a selector for an element.

        Args:
            element: Target element inside a parsed document

        Returns:
            Selector with primary strategy and ordered fallbacks
        """
        root = document_root(element)
        candidates: List[Strategy] = []

        testid = element.get("data-testid")
        if testid:
            candidates.append(Strategy(
                kind=StrategyKind.TESTID,
                value=f'[data-testid="{quote_attribute(testid)}"]',
            ))

        element_id = element.get("id")
        if element_id and self._is_unique_id(root, element_id):
            candidates.append(Strategy(kind=StrategyKind.ID, value=f"#{soupsieve.escape(element_id)}"))

        name = element.get("name")
        if name:
            self._add_if_resolves(candidates, root, element, Strategy(
                kind=StrategyKind.NAME,
                value=f'[name="{quote_attribute(name)}"]',
            ))

        path = self.css_path(element)
        if path:
            self._add_if_resolves(candidates, root, element, Strategy(kind=StrategyKind.CSS, value=path))

        if element.name in TEXT_TAGS:
            text = visible_text(element)
            if 0 < len(text) < self.max_text_length:
                self._add_if_resolves(candidates, root, element, Strategy(kind=StrategyKind.TEXT, value=text))

        info = self.element_info(element)
        if not candidates:
            return Selector(
                primary=Strategy(kind=StrategyKind.XPATH, value=self.xpath(element)),
                element_info=info,
            )
        return Selector(primary=candidates[0], fallbacks=candidates[1:], element_info=info)

    def css_path(self, element: Tag) -> str:
        """
        CSS ancestor path of at most ``max_css_depth`` levels.

        The path stops at the first ancestor with a unique id. Levels with
        same-tag siblings get ``:nth-of-type()`` so the path stays specific.
        """
        root = document_root(element)
        parts: List[str] = []
        node: Optional[Tag] = element

        while node is not None and not is_document(node) and len(parts) < self.max_css_depth:
            part = node.name
            node_id = node.get("id")
            if node_id and self._is_unique_id(root, node_id):
                parts.insert(0, f"{part}#{soupsieve.escape(node_id)}")
                break

            classes = [c for c in node.get("class", []) if c and not is_generated_class(c)]
            if classes:
                part += "".join(f".{soupsieve.escape(c)}" for c in classes)

            parent = node.parent
            if parent is not None:
                same_tag = [s for s in element_children(parent) if s.name == node.name]
                if len(same_tag) > 1:
                    part += f":nth-of-type({index_among(same_tag, node) + 1})"

            parts.insert(0, part)
            node = parent

        return " > ".join(parts)

    @staticmethod
    def xpath(element: Tag) -> str:
        """Absolute XPath by counting preceding same-tag siblings."""
        parts: List[str] = []
        node: Optional[Tag] = element
        while node is not None and not is_document(node):
            index = len(node.find_previous_siblings(node.name))
            parts.insert(0, f"{node.name}[{index + 1}]" if index else node.name)
            node = node.parent
        return "/" + "/".join(parts)

    @staticmethod
    def element_info(element: Tag) -> ElementInfo:
        text = visible_text(element)
        return ElementInfo(
            tag_name=element.name,
            input_type=element.get("type"),
            text=text[:100] or None,
            placeholder=element.get("placeholder"),
        )

    @staticmethod
    def _is_unique_id(root: Tag, element_id: str) -> bool:
        return len(root.find_all(id=element_id)) == 1

    @staticmethod
    def _add_if_resolves(candidates: List[Strategy], root: Tag, element: Tag, strategy: Strategy) -> None:
        if find_by_strategy(strategy, root) is element:
            candidates.append(strategy)


_default_generator = SelectorGenerator()


def generate_selector(element: Tag) -> Selector:
    """Generate a selector with the default generator."""
    return _default_generator.generate(element)
