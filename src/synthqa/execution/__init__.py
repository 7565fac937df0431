"""
Execution module - Run steps against a browser and record the outcome.
"""

from synthqa.execution.step_executor import StepExecutor
from synthqa.execution.session_manager import ExecutionSessionManager, RunPhase

__all__ = [
    "StepExecutor",
    "ExecutionSessionManager",
    "RunPhase",
]
