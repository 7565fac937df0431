"""
Script Generator - Render recordings as test script text.

The output uses the same dialect the Script Parser reads, so a generated
script parses back into one step per recorded action.
"""

from synthqa.models.actions import Action, ActionType, Recording
from synthqa.script.conversion import describe_action, quote_js
from synthqa.locators.playwright import to_playwright_selector


class ScriptGenerator:
    """
    Generates Playwright test scripts from recordings.

    Example:
        >>> generator = ScriptGenerator()
        >>> script = generator.generate(recording)
        >>> print(script)
    """

    def __init__(self, test_name: str = None, indent: str = "  "):
        """
        Initialize the generator.

        Args:
            test_name: Title of the generated test; defaults to the recording id
            indent: Indentation used inside the test body
        """
        self._test_name = test_name
        self._indent = indent

    def generate(self, recording: Recording) -> str:
        """
        Generate a script from a recording.

        Args:
            recording: The recording to convert

        Returns:
            Script source as a string
        """
        name = self._test_name or f"Recording {recording.id}"
        lines = [
            "import { test, expect } from '@playwright/test';",
            "",
            f"test({quote_js(name)}, async ({{ page }}) => {{",
        ]

        for number, action in enumerate(recording.actions, start=1):
            lines.append(f"{self._indent}// Step {number}: {describe_action(action)}")
            lines.append(f"{self._indent}{self._render_action(action)}")
            lines.append("")

        if lines[-1] == "":
            lines.pop()
        lines.append("});")
        lines.append("")
        return "\n".join(lines)

    def _render_action(self, action: Action) -> str:
        selector = quote_js(to_playwright_selector(action.selector.primary)) if action.selector else ""
        value = quote_js(action.value or "")

        if action.type == ActionType.NAVIGATE:
            return f"await page.goto({value});"
        if action.type == ActionType.CLICK:
            return f"await page.click({selector});"
        if action.type == ActionType.TYPE:
            return f"await page.fill({selector}, {value});"
        if action.type == ActionType.CHECK:
            return f"await page.check({selector});"
        if action.type == ActionType.UNCHECK:
            return f"await page.uncheck({selector});"
        if action.type == ActionType.SELECT:
            return f"await page.selectOption({selector}, {value});"
        if action.type == ActionType.WAIT:
            return f"await page.waitForSelector({selector});"
        if action.type == ActionType.SCREENSHOT:
            return "await page.screenshot();"
        if action.type == ActionType.ASSERT:
            return f"await expect(page.locator({selector})).toBeVisible();"

        command = (action.value or "").strip()
        if command.startswith("await page."):
            return command
        return f"await page.evaluate({quote_js(command)});"
