"""
Live-page resolution - translate selector strategies into driver selectors.

On a live page the driver does the matching, so resolving means converting
each strategy to a Playwright selector string and picking the first one that
currently matches something.
"""

import logging
from typing import List, Optional, Sequence, TYPE_CHECKING

from synthqa.exceptions import SynthQAError
from synthqa.locators.generator import quote_attribute
from synthqa.models.actions import Selector, Strategy, StrategyKind

if TYPE_CHECKING:
    from synthqa.interfaces.browser import IPage

logger = logging.getLogger(__name__)


def to_playwright_selector(strategy: Strategy) -> str:
    """Playwright selector string equivalent to a strategy."""
    if strategy.kind == StrategyKind.TEXT:
        text = quote_attribute(strategy.value)
        return f'button:text-is("{text}"), a:text-is("{text}")'
    if strategy.kind == StrategyKind.XPATH:
        return f"xpath={strategy.value}"
    return strategy.value


def selector_strings(selector: Selector) -> List[str]:
    """Driver selector strings for every strategy, in order."""
    return [to_playwright_selector(s) for s in selector.strategies()]


async def resolve_on_page(candidates: Sequence[str], page: "IPage") -> Optional[str]:
    """
    First candidate that matches at least one element on the page.

    Returns None when nothing matches; never raises.
    """
    for candidate in candidates:
        try:
            if await page.count(candidate) > 0:
                return candidate
        except SynthQAError as e:
            logger.debug(f"Selector {candidate!r} could not be evaluated: {e.message}")
    return None
