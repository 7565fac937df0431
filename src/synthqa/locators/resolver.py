"""
Selector Resolver - Find the live element a Selector points at.

Strategies are tried primary first, then each fallback in order. The first
match wins. Resolution never raises: a strategy whose value is not valid
for its engine counts as a miss, and an exhausted selector returns None.
"""

import logging
import re
from typing import Optional

from bs4 import Tag
from soupsieve import SelectorSyntaxError

from synthqa.locators.dom import element_children, visible_text
from synthqa.models.actions import Selector, Strategy, StrategyKind

logger = logging.getLogger(__name__)

TEXT_TAGS = ("button", "a")

_ID_XPATH = re.compile(r"""^//\*\[@id=(["'])(.+)\1\]$""")
_XPATH_STEP = re.compile(r"^([A-Za-z][\w-]*)(?:\[(\d+)\])?$")


def resolve_selector(selector: Selector, document: Tag) -> Optional[Tag]:
    """
    Resolve a selector against a document.

    Args:
        selector: Locator descriptor produced by the generator
        document: Parsed document to search

    Returns:
        The first element matched by any strategy, or None
    """
    for strategy in selector.strategies():
        element = find_by_strategy(strategy, document)
        if element is not None:
            if strategy is not selector.primary:
                logger.debug(f"Found element using fallback: {strategy.kind.value}")
            return element
    return None


def find_by_strategy(strategy: Strategy, document: Tag) -> Optional[Tag]:
    """Find the first element matched by a single strategy."""
    kind = strategy.kind
    if kind in (StrategyKind.TESTID, StrategyKind.ID, StrategyKind.NAME, StrategyKind.CSS):
        return _select_one(document, strategy.value)
    if kind == StrategyKind.TEXT:
        return find_by_text(document, strategy.value)
    if kind == StrategyKind.XPATH:
        return evaluate_xpath(document, strategy.value)
    return None


def find_by_text(document: Tag, text: str) -> Optional[Tag]:
    """
    First ``button`` or ``a`` whose trimmed text equals ``text`` exactly.

    Partial matches are deliberately not accepted.
    """
    for candidate in document.find_all(TEXT_TAGS):
        if visible_text(candidate) == text:
            return candidate
    return None


def evaluate_xpath(document: Tag, xpath: str) -> Optional[Tag]:
    """
    Evaluate the XPath forms the generator emits.

    Supported: absolute indexed paths (``/html/body/div[2]/a``) and
    ``//*[@id="..."]``. Anything else is a miss.
    """
    id_match = _ID_XPATH.match(xpath)
    if id_match:
        return document.find(id=id_match.group(2))

    if not xpath.startswith("/") or xpath.startswith("//"):
        logger.debug(f"Unsupported XPath form: {xpath}")
        return None

    node = document
    for part in xpath.strip("/").split("/"):
        step = _XPATH_STEP.match(part)
        if step is None:
            logger.debug(f"Unsupported XPath step '{part}' in {xpath}")
            return None
        name = step.group(1).lower()
        position = int(step.group(2) or 1)
        matches = [child for child in element_children(node) if child.name == name]
        if position < 1 or position > len(matches):
            return None
        node = matches[position - 1]
    return None if node is document else node


def _select_one(document: Tag, css: str) -> Optional[Tag]:
    try:
        return document.select_one(css)
    except (SelectorSyntaxError, ValueError, NotImplementedError) as e:
        logger.debug(f"Invalid CSS selector {css!r}: {e}")
        return None
