"""
Step Executor - Perform one parsed step against a live page.

Each step either completes or raises a ``StepFailure`` subclass describing
why it failed. The executor never decides the fate of the run; the session
manager turns failures into results.
"""

from typing import Optional, TYPE_CHECKING
import logging
import re

from synthqa.exceptions import (
    ActionExecutionError,
    ActionTimeoutError,
    AssertionMismatchError,
    ElementNotFoundError,
    UnsupportedCommandError,
)
from synthqa.locators.playwright import resolve_on_page
from synthqa.models.steps import Step, StepAction
from synthqa.script.parser import extract_literal

if TYPE_CHECKING:
    from synthqa.interfaces.browser import IPage

logger = logging.getLogger(__name__)

ELEMENT_ACTIONS = frozenset({
    StepAction.CLICK,
    StepAction.FILL,
    StepAction.TYPE,
    StepAction.CHECK,
    StepAction.UNCHECK,
    StepAction.SELECT,
    StepAction.WAIT,
})


class StepExecutor:
    """
    Executes steps on a page with a per-operation timeout.

    Attributes:
        timeout_ms: Timeout for every interaction and wait
        skipped_assertions: Number of ``expect`` commands whose matcher was
            not recognized and were therefore not checked

    Example:
        >>> executor = StepExecutor(timeout_ms=30000)
        >>> await executor.execute(step, page)
    """

    MATCHER = re.compile(r"\.(not\.)?(toHaveURL|toBeVisible|toHaveText|toContainText)\s*\((.*)$")
    LOCATOR = re.compile(r"page\.locator\(\s*(.*)$")
    REGEX_LITERAL = re.compile(r"^\s*/(.+)/[a-z]*\s*\)")

    def __init__(self, timeout_ms: int = 30000):
        self.timeout_ms = timeout_ms
        self.skipped_assertions = 0

    async def execute(self, step: Step, page: "IPage") -> None:
        """
        Execute a single step.

        Args:
            step: The step to execute
            page: Page to act on

        Raises:
            StepFailure: If the step did not complete
        """
        action = step.action

        if action == StepAction.NAVIGATE:
            if not step.value:
                raise ActionExecutionError("Navigate step has no URL", action_type=action.value)
            await page.goto(step.value, wait_until="domcontentloaded", timeout=self.timeout_ms)
        elif action in ELEMENT_ACTIONS:
            await self._interact(step, page)
        elif action == StepAction.SCREENSHOT:
            await page.screenshot()
        elif action == StepAction.EXPECT:
            await self._expect(step.command or "", page)
        else:
            raise UnsupportedCommandError(step.command or step.description)

    async def _interact(self, step: Step, page: "IPage") -> None:
        candidates = step.selector_candidates()
        if not candidates:
            raise ActionExecutionError(
                f"'{step.action.value}' step has no selector",
                action_type=step.action.value,
            )

        selector = candidates[0]
        if len(candidates) > 1:
            resolved = await resolve_on_page(candidates, page)
            if resolved is None:
                raise ElementNotFoundError(f"Element not found: {selector}", selector=selector)
            if resolved != selector:
                logger.debug(f"Using fallback selector {resolved!r} for {selector!r}")
            selector = resolved

        timeout = self.timeout_ms
        try:
            if step.action == StepAction.CLICK:
                await page.click(selector, timeout=timeout)
            elif step.action == StepAction.FILL:
                await page.fill(selector, step.value or "", timeout=timeout)
            elif step.action == StepAction.TYPE:
                await page.type(selector, step.value or "", timeout=timeout)
            elif step.action == StepAction.CHECK:
                await page.check(selector, timeout=timeout)
            elif step.action == StepAction.UNCHECK:
                await page.uncheck(selector, timeout=timeout)
            elif step.action == StepAction.SELECT:
                await page.select_option(selector, step.value or "", timeout=timeout)
            else:
                await page.wait_for_selector(selector, timeout=timeout)
        except ActionTimeoutError:
            await self._raise_if_missing(selector, page)
            raise

    async def _raise_if_missing(self, selector: str, page: "IPage") -> None:
        """Raise ElementNotFoundError when nothing matches ``selector``."""
        try:
            found = await page.count(selector)
        except ActionExecutionError:
            return
        if found == 0:
            raise ElementNotFoundError(f"Element not found: {selector}", selector=selector)

    async def _expect(self, command: str, page: "IPage") -> None:
        match = self.MATCHER.search(command)
        if match is None:
            self._skip(command)
            return

        negated = bool(match.group(1))
        matcher = match.group(2)
        arguments = match.group(3)

        if matcher == "toHaveURL":
            self._expect_url(arguments, page.url, negated, command)
            return

        selector = self._locator_selector(command)
        if selector is None:
            self._skip(command)
            return

        if matcher == "toBeVisible":
            await self._expect_visible(selector, page, negated)
            return

        expected = extract_literal(arguments)
        if expected is None:
            self._skip(command)
            return

        actual = await self._text_of(selector, page)
        normalized = " ".join((actual or "").split())
        if matcher == "toHaveText":
            ok = normalized == " ".join(expected.split())
            message = f'Expected text "{expected}" but got "{actual}"'
        else:
            ok = expected in normalized or expected in (actual or "")
            message = f'Expected text to contain "{expected}" but got "{actual}"'

        if ok == negated:
            if negated:
                message = f'Expected text not to match "{expected}" but got "{actual}"'
            raise AssertionMismatchError(message, expected=expected, actual=actual)

    def _expect_url(self, arguments: str, actual: str, negated: bool, command: str) -> None:
        expected = extract_literal(arguments)
        if expected is not None:
            ok = expected in actual
        else:
            pattern = self.REGEX_LITERAL.match(arguments)
            if pattern is None:
                self._skip(command)
                return
            expected = pattern.group(1)
            ok = re.search(expected, actual) is not None

        if ok == negated:
            verb = "not to contain" if negated else "to contain"
            raise AssertionMismatchError(
                f'Expected URL {verb} "{expected}" but got "{actual}"',
                expected=expected,
                actual=actual,
            )

    async def _expect_visible(self, selector: str, page: "IPage", negated: bool) -> None:
        if negated:
            if await page.is_visible(selector):
                raise AssertionMismatchError(f'Expected "{selector}" to be hidden', expected="hidden", actual="visible")
            return

        try:
            await page.wait_for_selector(selector, state="visible", timeout=self.timeout_ms)
        except ActionTimeoutError:
            await self._raise_if_missing(selector, page)
            raise AssertionMismatchError(
                f'Expected "{selector}" to be visible',
                expected="visible",
                actual="hidden",
            )

    async def _text_of(self, selector: str, page: "IPage") -> Optional[str]:
        try:
            return await page.text_content(selector, timeout=self.timeout_ms)
        except ActionTimeoutError:
            await self._raise_if_missing(selector, page)
            raise

    def _locator_selector(self, command: str) -> Optional[str]:
        locator = self.LOCATOR.search(command)
        if locator is None:
            return None
        return extract_literal(locator.group(1))

    def _skip(self, command: str) -> None:
        self.skipped_assertions += 1
        logger.warning(f"Unrecognized assertion, not checked: {command}")
