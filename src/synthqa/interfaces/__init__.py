"""
Interfaces module - Abstract base classes for the browser driver.
"""

from synthqa.interfaces.browser import (
    BrowserType,
    IBrowser,
    IBrowserContext,
    IPage,
)

__all__ = [
    "BrowserType",
    "IBrowser",
    "IBrowserContext",
    "IPage",
]
