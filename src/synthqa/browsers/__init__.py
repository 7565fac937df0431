"""
Browsers module - Browser driver implementations.
"""

from synthqa.browsers.playwright_browser import PlaywrightBrowser

__all__ = [
    "PlaywrightBrowser",
]
