"""
Locators module - Selector generation and resolution.
"""

from synthqa.locators.dom import parse_document, element_path, element_at_path
from synthqa.locators.generator import SelectorGenerator, generate_selector
from synthqa.locators.resolver import resolve_selector, find_by_strategy
from synthqa.locators.playwright import to_playwright_selector, selector_strings, resolve_on_page

__all__ = [
    "parse_document",
    "element_path",
    "element_at_path",
    "SelectorGenerator",
    "generate_selector",
    "resolve_selector",
    "find_by_strategy",
    "to_playwright_selector",
    "selector_strings",
    "resolve_on_page",
]
