"""
Script Parser - Turn Playwright-style test script text into executable steps.

The parser is line-oriented and never evaluates the script. It recognizes a
fixed vocabulary of ``await page.<call>(...)`` lines and ``expect(...)``
assertions; everything else is either skipped boilerplate or kept verbatim as
a ``custom`` step that fails at execution time.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from synthqa.models.steps import Step, StepAction

logger = logging.getLogger(__name__)


# Script call name -> step action
CALL_VOCABULARY: Dict[str, StepAction] = {
    "goto": StepAction.NAVIGATE,
    "click": StepAction.CLICK,
    "fill": StepAction.FILL,
    "type": StepAction.TYPE,
    "check": StepAction.CHECK,
    "uncheck": StepAction.UNCHECK,
    "selectOption": StepAction.SELECT,
    "waitForSelector": StepAction.WAIT,
    "screenshot": StepAction.SCREENSHOT,
}

# Default description per action when no step comment precedes the line
DESCRIPTION_TEMPLATES: Dict[StepAction, str] = {
    StepAction.NAVIGATE: "Navigate to {target}",
    StepAction.CLICK: "Click {target}",
    StepAction.FILL: "Fill {target}",
    StepAction.TYPE: "Type into {target}",
    StepAction.CHECK: "Check {target}",
    StepAction.UNCHECK: "Uncheck {target}",
    StepAction.SELECT: "Select option in {target}",
    StepAction.WAIT: "Wait for {target}",
    StepAction.SCREENSHOT: "Take screenshot",
}

EXPECT_DESCRIPTION = "Verify expectation"
CUSTOM_DESCRIPTION = "Execute command"

# A quoted literal: the closing quote must match the opening one, so a
# single-quoted literal may contain double quotes and vice versa.
STRING_LITERAL = re.compile(r"""(['"`])((?:\\.|(?!\1).)*)\1""")
_ESCAPE = re.compile(r"\\(.)")


def extract_literals(text: str) -> List[str]:
    """All quoted string literals in ``text``, unescaped, in order."""
    return [_ESCAPE.sub(r"\1", match.group(2)) for match in STRING_LITERAL.finditer(text)]


def extract_literal(text: str) -> Optional[str]:
    """First quoted string literal in ``text``, or None."""
    literals = extract_literals(text)
    return literals[0] if literals else None


class ScriptParser:
    """
    Parse test script text into a list of ``Step`` objects.

    Example:
        >>> parser = ScriptParser()
        >>> steps = parser.parse('''
        ...     // Step 1: Log in
        ...     await page.click('#login');
        ... ''')
        >>> steps[0].description
        'Log in'
    """

    STEP_COMMENT = re.compile(r"^//\s*Step\s*\d+\s*:\s*(.*)$", re.IGNORECASE)
    PAGE_CALL = re.compile(r"await\s+page\.(\w+)\s*\((.*)$")

    BOILERPLATE_PREFIXES: Tuple[str, ...] = (
        "import ",
        "test.describe(",
        "test.describe.",
        "test.beforeEach(",
        "test.afterEach(",
        "test(",
    )
    REQUIRE_LINE = re.compile(r"^(?:const|let|var)\s+.+=\s*require\(")
    CLOSERS = frozenset({"});", "})", "}", "};", ");"})

    def parse(self, text: str) -> List[Step]:
        """
        Parse script text.

        Args:
            text: The script source

        Returns:
            Steps in line order; empty if nothing is recognized
        """
        steps: List[Step] = []
        pending: Optional[str] = None

        for raw in text.splitlines():
            line = raw.strip()
            if not line or self._is_boilerplate(line):
                continue

            if line.startswith("//"):
                comment = self.STEP_COMMENT.match(line)
                if comment:
                    pending = comment.group(1).strip() or None
                continue

            step: Optional[Step] = None
            code = STRING_LITERAL.sub("''", line)
            if "expect(" in code:
                step = Step(
                    description=pending or EXPECT_DESCRIPTION,
                    action=StepAction.EXPECT,
                    command=line,
                )
            elif "await page." in code:
                step = self._parse_page_call(line, pending)

            if step is not None:
                steps.append(step)
                pending = None

        logger.debug(f"Parsed {len(steps)} steps from script")
        return steps

    def _is_boilerplate(self, line: str) -> bool:
        if line in self.CLOSERS:
            return True
        if line.startswith(self.BOILERPLATE_PREFIXES):
            return True
        if "async ({ page })" in line or "async({ page })" in line:
            return True
        return bool(self.REQUIRE_LINE.match(line))

    def _parse_page_call(self, line: str, description: Optional[str]) -> Step:
        match = self.PAGE_CALL.search(line)
        action = CALL_VOCABULARY.get(match.group(1)) if match else None
        if action is None:
            return Step(
                description=description or CUSTOM_DESCRIPTION,
                action=StepAction.CUSTOM,
                command=line,
            )

        literals = extract_literals(match.group(2))
        first = literals[0] if literals else None
        second = literals[1] if len(literals) > 1 else None

        if action == StepAction.NAVIGATE:
            selector, value = None, first
        elif action == StepAction.SCREENSHOT:
            selector, value = None, None
        else:
            selector, value = first, second

        if not description:
            target = value if action == StepAction.NAVIGATE else selector
            description = DESCRIPTION_TEMPLATES[action].format(target=target or "")

        return Step(
            description=description.strip(),
            action=action,
            selector=selector,
            value=value,
            command=line,
        )


def parse_script(text: str) -> List[Step]:
    """Parse script text with the default parser."""
    return ScriptParser().parse(text)
