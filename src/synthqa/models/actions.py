"""
Action Model - The shared vocabulary of recordable and executable operations.

An ``Action`` is one recorded or scripted browser operation. Element-targeted
actions carry a ``Selector``: a ranked set of locator strategies, most
reliable first, so replay can survive markup changes.
"""

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from synthqa.exceptions import RecordingStateError


class ActionType(str, Enum):
    """Types of recordable/executable actions."""
    NAVIGATE = "navigate"
    CLICK = "click"
    TYPE = "type"
    CHECK = "check"
    UNCHECK = "uncheck"
    SELECT = "select"
    WAIT = "wait"
    SCREENSHOT = "screenshot"
    ASSERT = "assert"
    CUSTOM = "custom"


# Actions that operate on an element and therefore need a selector
SELECTOR_REQUIRED = frozenset({
    ActionType.CLICK,
    ActionType.TYPE,
    ActionType.CHECK,
    ActionType.UNCHECK,
    ActionType.SELECT,
    ActionType.WAIT,
})

SELECTOR_FORBIDDEN = frozenset({ActionType.NAVIGATE, ActionType.SCREENSHOT})


class StrategyKind(str, Enum):
    """Locator strategies, in decreasing order of reliability."""
    TESTID = "testid"
    ID = "id"
    NAME = "name"
    CSS = "css"
    TEXT = "text"
    XPATH = "xpath"


STRATEGY_PRIORITY = list(StrategyKind)


class Strategy(BaseModel):
    """A single tagged locator: ``{kind, value}``."""
    kind: StrategyKind
    value: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.kind.value}={self.value}"


class ElementInfo(BaseModel):
    """Descriptive data about the target element captured at record time."""
    tag_name: str
    input_type: Optional[str] = None
    text: Optional[str] = None
    placeholder: Optional[str] = None


class Selector(BaseModel):
    """
    A locator descriptor with a primary strategy and ordered fallbacks.

    Attributes:
        primary: The most specific strategy that applied
        fallbacks: Remaining strategies, most reliable first
        element_info: Display data about the element; never used to resolve
    """
    primary: Strategy
    fallbacks: List[Strategy] = Field(default_factory=list)
    element_info: Optional[ElementInfo] = None

    @model_validator(mode="after")
    def _check_order(self) -> "Selector":
        ranks = [STRATEGY_PRIORITY.index(s.kind) for s in self.strategies()]
        if ranks != sorted(ranks):
            raise ValueError(
                "strategies must be ordered testid > id > name > css > text > xpath"
            )
        return self

    def strategies(self) -> Iterator[Strategy]:
        """Iterate over the primary strategy then each fallback."""
        yield self.primary
        yield from self.fallbacks

    def describe(self) -> str:
        """Short human-readable form, used in messages and descriptions."""
        return self.primary.value


class Viewport(BaseModel):
    """Viewport size at capture time."""
    width: int = Field(gt=0)
    height: int = Field(gt=0)


class Action(BaseModel):
    """
    One recorded or scripted operation.

    Attributes:
        type: The kind of operation
        timestamp_offset_ms: Milliseconds since the recording started
        selector: Target element locator; required for element actions
        value: Typed text, option value or navigation URL
        viewport: Viewport size when the action was captured
    """
    type: ActionType
    timestamp_offset_ms: int = Field(default=0, ge=0)
    selector: Optional[Selector] = None
    value: Optional[str] = None
    viewport: Optional[Viewport] = None

    @model_validator(mode="after")
    def _check_selector(self) -> "Action":
        if self.type in SELECTOR_REQUIRED and self.selector is None:
            raise ValueError(f"'{self.type.value}' actions require a selector")
        if self.type in SELECTOR_FORBIDDEN and self.selector is not None:
            raise ValueError(f"'{self.type.value}' actions do not take a selector")
        return self


class RecordingState(str, Enum):
    """Lifecycle state of a recording."""
    RECORDING = "recording"
    STOPPED = "stopped"


class Recording(BaseModel):
    """
    An ordered sequence of actions plus capture metadata.

    A recording is appended to while ``recording`` and frozen by
    ``finalize()``. Actions are held as a tuple and only grow through
    ``append()``. Once stopped, appending, finalizing again or assigning any
    field raises ``RecordingStateError``.
    """
    id: str
    start_url: Optional[str] = None
    viewport: Optional[Viewport] = None
    duration_ms: int = 0
    state: RecordingState = RecordingState.RECORDING
    actions: Tuple[Action, ...] = ()

    @property
    def is_stopped(self) -> bool:
        return self.state == RecordingState.STOPPED

    def __setattr__(self, name: str, value: Any) -> None:
        if self.is_stopped:
            raise RecordingStateError(f"Recording {self.id} is stopped and cannot be modified")
        super().__setattr__(name, value)

    def append(self, action: Action) -> None:
        """Append an action; only valid while recording."""
        if self.is_stopped:
            raise RecordingStateError(
                f"Recording {self.id} is stopped; actions can no longer be appended"
            )
        self.actions = self.actions + (action,)

    def finalize(self, elapsed_ms: int) -> "Recording":
        """
        Stop the recording, compute its duration and freeze the action list.

        Args:
            elapsed_ms: Milliseconds since the recording started

        Returns:
            self, for chaining
        """
        if self.is_stopped:
            raise RecordingStateError(f"Recording {self.id} is already stopped")
        self.duration_ms = max(elapsed_ms, 0)
        self.state = RecordingState.STOPPED
        return self

    def to_payload(self) -> Dict[str, Any]:
        """JSON-compatible representation."""
        return self.model_dump(mode="json")
