"""
Step - The executable unit on the server path.

Steps come from the script parser (one per recognized script line) or from
a recording (one per action). Selectors are kept in raw driver-string form;
resolution happens at execution time.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class StepAction(str, Enum):
    """Executable step kinds."""
    NAVIGATE = "navigate"
    CLICK = "click"
    FILL = "fill"
    TYPE = "type"
    CHECK = "check"
    UNCHECK = "uncheck"
    SELECT = "select"
    WAIT = "wait"
    SCREENSHOT = "screenshot"
    EXPECT = "expect"
    CUSTOM = "custom"


class Step(BaseModel):
    """
    A parsed, executable step.

    Attributes:
        description: Human-readable description shown in results
        action: What to do
        selector: Raw selector string (Playwright syntax), not yet resolved
        fallback_selectors: Alternatives tried in order when ``selector``
            matches nothing; only recordings produce these
        value: Text to enter, option to select or URL to load
        command: The original script line, kept for ``expect`` and
            ``custom`` steps whose content is interpreted at execution time
    """
    description: str
    action: StepAction
    selector: Optional[str] = None
    fallback_selectors: List[str] = Field(default_factory=list)
    value: Optional[str] = None
    command: Optional[str] = None

    def selector_candidates(self) -> List[str]:
        """The selector followed by its fallbacks."""
        if self.selector is None:
            return []
        return [self.selector, *self.fallback_selectors]
