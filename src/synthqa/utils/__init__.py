"""
Utilities module - Shared helpers.
"""

from synthqa.utils.logging import setup_logging, execution_logger

__all__ = [
    "setup_logging",
    "execution_logger",
]
