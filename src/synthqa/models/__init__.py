"""
Models module - Data model shared by the recorder, parser and executor.
"""

from synthqa.models.actions import (
    ActionType,
    Action,
    StrategyKind,
    Strategy,
    ElementInfo,
    Selector,
    Viewport,
    Recording,
    RecordingState,
)
from synthqa.models.steps import Step, StepAction
from synthqa.models.execution import (
    ExecutionSession,
    ExecutionStatus,
    StepResult,
    StepStatus,
    FailureKind,
)

__all__ = [
    "ActionType",
    "Action",
    "StrategyKind",
    "Strategy",
    "ElementInfo",
    "Selector",
    "Viewport",
    "Recording",
    "RecordingState",
    "Step",
    "StepAction",
    "ExecutionSession",
    "ExecutionStatus",
    "StepResult",
    "StepStatus",
    "FailureKind",
]
