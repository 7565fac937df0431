"""
SynthQA - Browser test automation core.

Generates robust element selectors from recorded interactions, parses
Playwright-style scripts into steps and executes them against a real
browser, persisting per-step results, screenshots and video.
"""

__version__ = "0.1.0"
