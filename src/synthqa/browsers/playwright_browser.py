"""
Playwright Browser - Implementation of IBrowser using Playwright.

Driver errors are translated at this boundary: a Playwright ``TimeoutError``
becomes ``ActionTimeoutError`` and any other Playwright error becomes
``ActionExecutionError``, so the executor never sees driver exception types.
"""

from contextlib import contextmanager
from typing import Any, Iterator, Optional
import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from synthqa.interfaces.browser import (
    IBrowser,
    IBrowserContext,
    IPage,
    BrowserType,
)
from synthqa.exceptions import (
    ActionExecutionError,
    ActionTimeoutError,
    BrowserConnectionError,
    BrowserLaunchError,
    BrowserNotStartedError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30000


@contextmanager
def driver_errors(action_type: str, selector: Optional[str], timeout_ms: int) -> Iterator[None]:
    """Translate Playwright errors raised inside the block."""
    try:
        yield
    except PlaywrightTimeoutError as e:
        target = f" on {selector}" if selector else ""
        raise ActionTimeoutError(
            f"Timeout {timeout_ms}ms exceeded during {action_type}{target}",
            action_type=action_type,
            timeout_ms=timeout_ms,
        ) from e
    except PlaywrightError as e:
        raise ActionExecutionError(
            f"{action_type} failed: {e.message}",
            action_type=action_type,
            selector=selector,
        ) from e


class PlaywrightPage(IPage):
    """
    Playwright implementation of IPage.

    Wraps a Playwright Page for navigation and interaction.
    """

    def __init__(self, page: Any, default_timeout_ms: int = DEFAULT_TIMEOUT_MS):
        """
        Initialize the page wrapper.

        Args:
            page: Playwright Page object
            default_timeout_ms: Timeout reported when a call passes none
        """
        self._page = page
        self._timeout = default_timeout_ms

    @property
    def url(self) -> str:
        """Get current URL."""
        return self._page.url

    def _timeout_of(self, options: dict) -> int:
        return int(options.get("timeout") or self._timeout)

    async def goto(self, url: str, **options: Any) -> None:
        """Navigate to URL."""
        with driver_errors("navigate", None, self._timeout_of(options)):
            await self._page.goto(url, **options)

    async def click(self, selector: str, **options: Any) -> None:
        """Click element."""
        with driver_errors("click", selector, self._timeout_of(options)):
            await self._page.click(selector, **options)

    async def fill(self, selector: str, value: str, **options: Any) -> None:
        """Fill input."""
        with driver_errors("fill", selector, self._timeout_of(options)):
            await self._page.fill(selector, value, **options)

    async def type(self, selector: str, text: str, **options: Any) -> None:
        """Type text."""
        with driver_errors("type", selector, self._timeout_of(options)):
            await self._page.type(selector, text, **options)

    async def check(self, selector: str, **options: Any) -> None:
        """Check checkbox."""
        with driver_errors("check", selector, self._timeout_of(options)):
            await self._page.check(selector, **options)

    async def uncheck(self, selector: str, **options: Any) -> None:
        """Uncheck checkbox."""
        with driver_errors("uncheck", selector, self._timeout_of(options)):
            await self._page.uncheck(selector, **options)

    async def select_option(self, selector: str, value: str, **options: Any) -> None:
        """Select option."""
        with driver_errors("select", selector, self._timeout_of(options)):
            await self._page.select_option(selector, value, **options)

    async def wait_for_selector(self, selector: str, **options: Any) -> None:
        """Wait for element."""
        with driver_errors("wait", selector, self._timeout_of(options)):
            await self._page.wait_for_selector(selector, **options)

    async def screenshot(self, **options: Any) -> bytes:
        """Take screenshot."""
        with driver_errors("screenshot", None, self._timeout_of(options)):
            return await self._page.screenshot(**options)

    async def is_visible(self, selector: str) -> bool:
        """Check visibility without waiting."""
        with driver_errors("expect", selector, self._timeout):
            return await self._page.is_visible(selector)

    async def text_content(self, selector: str, **options: Any) -> Optional[str]:
        """Get element text."""
        with driver_errors("expect", selector, self._timeout_of(options)):
            return await self._page.text_content(selector, **options)

    async def count(self, selector: str) -> int:
        """Count matching elements."""
        with driver_errors("locate", selector, self._timeout):
            return await self._page.locator(selector).count()

    async def video_path(self) -> Optional[str]:
        """Get the video file path, if recording."""
        video = self._page.video
        if video is None:
            return None
        return str(await video.path())


class PlaywrightContext(IBrowserContext):
    """
    Playwright implementation of IBrowserContext.
    """

    def __init__(self, context: Any, default_timeout_ms: int = DEFAULT_TIMEOUT_MS):
        self._context = context
        self._timeout = default_timeout_ms

    async def new_page(self) -> IPage:
        """Create new page."""
        page = await self._context.new_page()
        page.set_default_timeout(self._timeout)
        return PlaywrightPage(page, self._timeout)

    async def close(self) -> None:
        """Close context."""
        await self._context.close()


class PlaywrightBrowser(IBrowser):
    """
    Playwright implementation of IBrowser.

    Example:
        >>> browser = PlaywrightBrowser(default_timeout_ms=30000)
        >>> await browser.launch(headless=True)
        >>> context = await browser.new_context()
        >>> page = await context.new_page()
        >>> await page.goto("https://example.com")
        >>> await browser.close()
    """

    def __init__(self, default_timeout_ms: int = DEFAULT_TIMEOUT_MS):
        """Initialize the browser (not launched yet)."""
        self._playwright: Any = None
        self._browser: Any = None
        self._timeout = default_timeout_ms

    @property
    def is_connected(self) -> bool:
        """Check if browser is connected."""
        return self._browser is not None and self._browser.is_connected()

    async def _start_driver(self) -> Any:
        from playwright.async_api import async_playwright

        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return self._playwright

    async def launch(
        self,
        headless: bool = True,
        browser_type: BrowserType = BrowserType.CHROMIUM,
        **options: Any,
    ) -> None:
        """
        Launch the browser.

        Args:
            headless: Whether to run headless
            browser_type: Type of browser to launch
            **options: Additional Playwright launch options
        """
        try:
            playwright = await self._start_driver()
            launcher = getattr(playwright, BrowserType(browser_type).value)
            self._browser = await launcher.launch(headless=headless, **options)
            logger.info(f"Launched {BrowserType(browser_type).value} browser (headless={headless})")
        except PlaywrightError as e:
            await self._stop_driver()
            raise BrowserLaunchError(f"Failed to launch browser: {e.message}") from e
        except BaseException:
            await self._stop_driver()
            raise

    async def connect(self, endpoint: str, timeout_ms: int = 60000) -> None:
        """
        Attach to a remote Chromium over its websocket endpoint.

        Args:
            endpoint: Websocket URL
            timeout_ms: Connection timeout
        """
        try:
            playwright = await self._start_driver()
            self._browser = await playwright.chromium.connect(endpoint, timeout=timeout_ms)
            logger.info("Connected to remote browser")
        except PlaywrightError as e:
            await self._stop_driver()
            raise BrowserConnectionError(
                f"Failed to connect to remote browser: {e.message}",
                endpoint=endpoint.split("?", 1)[0],
            ) from e
        except BaseException:
            await self._stop_driver()
            raise

    async def new_context(self, **options: Any) -> IBrowserContext:
        """
        Create a new browser context.

        Args:
            **options: Context options

        Returns:
            New context instance
        """
        if not self._browser:
            raise BrowserNotStartedError("Browser not launched. Call launch() or connect() first.")

        context = await self._browser.new_context(**options)
        return PlaywrightContext(context, self._timeout)

    async def close(self) -> None:
        """Close the browser and cleanup."""
        try:
            if self._browser:
                await self._browser.close()
        finally:
            self._browser = None
            await self._stop_driver()
        logger.info("Browser closed")

    async def _stop_driver(self) -> None:
        playwright, self._playwright = self._playwright, None
        if playwright:
            await playwright.stop()
