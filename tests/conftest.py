"""
Pytest configuration and fixtures.

``FakeBrowser``/``FakePage`` implement the browser interfaces over a tiny
in-memory model of a site: a set of selectors that currently match, texts per
selector and clicks that navigate. They let the execution path run without
a real browser.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pytest

from synthqa.exceptions import ActionTimeoutError, BrowserConnectionError, BrowserLaunchError
from synthqa.interfaces.browser import BrowserType, IBrowser, IBrowserContext, IPage


class FakePage(IPage):
    """Page whose DOM is a set of matching selectors."""

    def __init__(
        self,
        elements: Iterable[str] = (),
        texts: Optional[Dict[str, str]] = None,
        navigations: Optional[Dict[str, str]] = None,
        hidden: Iterable[str] = (),
    ):
        self._url = "about:blank"
        self.elements = set(elements)
        self.texts = dict(texts or {})
        self.navigations = dict(navigations or {})
        self.hidden = set(hidden)
        self.calls: List[tuple] = []
        self.screenshot_error: Optional[Exception] = None
        self.video: Optional[str] = None

    @property
    def url(self) -> str:
        return self._url

    def _require(self, action: str, selector: str, options: Dict[str, Any]) -> None:
        if selector not in self.elements:
            raise ActionTimeoutError(
                f"Timeout {options.get('timeout', 0)}ms exceeded during {action} on {selector}",
                action_type=action,
                timeout_ms=options.get("timeout", 0),
            )

    async def goto(self, url: str, **options: Any) -> None:
        self.calls.append(("goto", url))
        self._url = url

    async def click(self, selector: str, **options: Any) -> None:
        self._require("click", selector, options)
        self.calls.append(("click", selector))
        if selector in self.navigations:
            self._url = self.navigations[selector]

    async def fill(self, selector: str, value: str, **options: Any) -> None:
        self._require("fill", selector, options)
        self.calls.append(("fill", selector, value))

    async def type(self, selector: str, text: str, **options: Any) -> None:
        self._require("type", selector, options)
        self.calls.append(("type", selector, text))

    async def check(self, selector: str, **options: Any) -> None:
        self._require("check", selector, options)
        self.calls.append(("check", selector))

    async def uncheck(self, selector: str, **options: Any) -> None:
        self._require("uncheck", selector, options)
        self.calls.append(("uncheck", selector))

    async def select_option(self, selector: str, value: str, **options: Any) -> None:
        self._require("select", selector, options)
        self.calls.append(("select", selector, value))

    async def wait_for_selector(self, selector: str, **options: Any) -> None:
        self._require("wait", selector, options)
        if options.get("state") == "visible" and selector in self.hidden:
            raise ActionTimeoutError("Timeout waiting for visible", action_type="wait", timeout_ms=0)
        self.calls.append(("wait", selector))

    async def screenshot(self, **options: Any) -> bytes:
        if self.screenshot_error is not None:
            raise self.screenshot_error
        self.calls.append(("screenshot",))
        return b"\x89PNG fake"

    async def is_visible(self, selector: str) -> bool:
        return selector in self.elements and selector not in self.hidden

    async def text_content(self, selector: str, **options: Any) -> Optional[str]:
        self._require("expect", selector, options)
        return self.texts.get(selector, "")

    async def count(self, selector: str) -> int:
        return 1 if selector in self.elements else 0

    async def video_path(self) -> Optional[str]:
        return self.video


class FakeContext(IBrowserContext):
    def __init__(self, page: FakePage, options: Dict[str, Any]):
        self.page = page
        self.options = options
        self.close_count = 0

    async def new_page(self) -> IPage:
        return self.page

    async def close(self) -> None:
        self.close_count += 1


class FakeBrowser(IBrowser):
    """Records how it was acquired and released."""

    def __init__(self, page: Optional[FakePage] = None):
        self.page = page or FakePage()
        self.launched: Optional[Dict[str, Any]] = None
        self.connected_to: Optional[str] = None
        self.contexts: List[FakeContext] = []
        self.close_count = 0
        self.launch_error = False
        self.connect_error = False
        self.close_error: Optional[Exception] = None

    @property
    def is_connected(self) -> bool:
        return (self.launched is not None or self.connected_to is not None) and self.close_count == 0

    async def launch(self, headless: bool = True, browser_type: BrowserType = BrowserType.CHROMIUM, **options: Any) -> None:
        if self.launch_error:
            raise BrowserLaunchError("Failed to launch browser: executable missing")
        self.launched = {"headless": headless, "browser_type": BrowserType(browser_type), **options}

    async def connect(self, endpoint: str, timeout_ms: int = 60000) -> None:
        if self.connect_error:
            raise BrowserConnectionError("Failed to connect to remote browser: refused", endpoint=endpoint)
        self.connected_to = endpoint

    async def new_context(self, **options: Any) -> IBrowserContext:
        context = FakeContext(self.page, options)
        self.contexts.append(context)
        return context

    async def close(self) -> None:
        self.close_count += 1
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture
def settings(tmp_path):
    """Provide test settings: in-memory stores, no settle delay."""
    from synthqa.config import Settings, BrowserSettings, ExecutionSettings

    return Settings(
        browser=BrowserSettings(headless=True, timeout_ms=1000),
        execution=ExecutionSettings(settle_ms=0, output_dir=str(tmp_path / "output"), store="memory"),
    )


@pytest.fixture
def fake_page():
    return FakePage()


@pytest.fixture
def fake_browser(fake_page):
    return FakeBrowser(fake_page)


@pytest.fixture
def stores(tmp_path):
    """Execution, script and artifact stores."""
    from synthqa.storage import InMemoryExecutionStore, InMemoryScriptStore, LocalArtifactStore

    return InMemoryExecutionStore(), InMemoryScriptStore(), LocalArtifactStore(tmp_path / "artifacts")


@pytest.fixture
def manager(stores, settings, fake_browser):
    """Execution manager whose every run uses ``fake_browser``."""
    from synthqa.execution import ExecutionSessionManager

    executions, scripts, artifacts = stores
    return ExecutionSessionManager(executions, scripts, artifacts, settings, browser_factory=lambda: fake_browser)


@pytest.fixture
def login_script() -> str:
    return (
        "import { test, expect } from '@playwright/test';\n"
        "\n"
        "test('login', async ({ page }) => {\n"
        "  await page.goto('https://x.test/login');\n"
        "  await page.fill('#email', 'a@x.com');\n"
        "  await page.click('button:has-text(\"Sign in\")');\n"
        "  await expect(page).toHaveURL('/dashboard');\n"
        "});\n"
    )


@pytest.fixture
def login_page() -> FakePage:
    """A login form whose submit button redirects to the dashboard."""
    return FakePage(
        elements={"#email", 'button:has-text("Sign in")'},
        navigations={'button:has-text("Sign in")': "https://x.test/dashboard"},
    )


def write_video(tmp_path: Path) -> str:
    path = tmp_path / "raw-video.webm"
    path.write_bytes(b"webm")
    return str(path)
