"""
Browser Interface - Abstract base classes for the browser driver.

The step executor and session manager only talk to these interfaces, so a
test can drive them with fakes and the driver can be swapped without
touching execution logic.

Example:
    >>> from synthqa.browsers import PlaywrightBrowser
    >>> browser = PlaywrightBrowser()
    >>> await browser.launch(headless=True)
    >>> context = await browser.new_context(record_video_dir="./videos")
    >>> page = await context.new_page()
    >>> await page.goto("https://example.com")
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional


class BrowserType(str, Enum):
    """Supported browser engines."""
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class IPage(ABC):
    """
    Abstract interface for browser page operations.

    Interaction methods raise ``ActionTimeoutError`` when the driver times
    out and ``ActionExecutionError`` for any other driver failure.
    """

    @property
    @abstractmethod
    def url(self) -> str:
        """Get the current page URL."""
        ...

    @abstractmethod
    async def goto(self, url: str, **options: Any) -> None:
        """
        Navigate to a URL.

        Args:
            url: The URL to navigate to
            **options: Driver navigation options (e.g., wait_until, timeout)
        """
        ...

    @abstractmethod
    async def click(self, selector: str, **options: Any) -> None:
        """Click the element matching the selector."""
        ...

    @abstractmethod
    async def fill(self, selector: str, value: str, **options: Any) -> None:
        """Replace the value of an input element."""
        ...

    @abstractmethod
    async def type(self, selector: str, text: str, **options: Any) -> None:
        """Type text into an element keystroke by keystroke."""
        ...

    @abstractmethod
    async def check(self, selector: str, **options: Any) -> None:
        """Check a checkbox or radio button."""
        ...

    @abstractmethod
    async def uncheck(self, selector: str, **options: Any) -> None:
        """Uncheck a checkbox."""
        ...

    @abstractmethod
    async def select_option(self, selector: str, value: str, **options: Any) -> None:
        """
        Select an option in a <select> element.

        Args:
            selector: Selector for the select element
            value: Option value to select
            **options: Driver options
        """
        ...

    @abstractmethod
    async def wait_for_selector(self, selector: str, **options: Any) -> None:
        """Wait until an element matching the selector is visible."""
        ...

    @abstractmethod
    async def screenshot(self, **options: Any) -> bytes:
        """
        Capture the viewport.

        Returns:
            The screenshot as PNG bytes
        """
        ...

    @abstractmethod
    async def is_visible(self, selector: str) -> bool:
        """Whether the first element matching the selector is visible."""
        ...

    @abstractmethod
    async def text_content(self, selector: str, **options: Any) -> Optional[str]:
        """Text content of the first element matching the selector."""
        ...

    @abstractmethod
    async def count(self, selector: str) -> int:
        """Number of elements currently matching the selector."""
        ...

    @abstractmethod
    async def video_path(self) -> Optional[str]:
        """
        Path of this page's video recording, if the context records video.

        The file is complete only after the owning context is closed.
        """
        ...


class IBrowserContext(ABC):
    """
    Abstract interface for a browser context (isolated session).

    Closing a context flushes its video recordings to disk.
    """

    @abstractmethod
    async def new_page(self) -> IPage:
        """Create a new page in this context."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close this context and all its pages."""
        ...


class IBrowser(ABC):
    """
    Abstract interface for browser management.

    A browser is either launched locally or attached to a remote endpoint.
    """

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the browser is connected and running."""
        ...

    @abstractmethod
    async def launch(
        self,
        headless: bool = True,
        browser_type: BrowserType = BrowserType.CHROMIUM,
        **options: Any,
    ) -> None:
        """
        Launch a local browser instance.

        Args:
            headless: Whether to run in headless mode
            browser_type: Engine to launch
            **options: Driver launch options
        """
        ...

    @abstractmethod
    async def connect(self, endpoint: str, timeout_ms: int = 60000) -> None:
        """
        Attach to a remote browser over its websocket endpoint.

        Args:
            endpoint: Websocket URL, including any auth token
            timeout_ms: Connection timeout
        """
        ...

    @abstractmethod
    async def new_context(self, **options: Any) -> IBrowserContext:
        """
        Create a new browser context.

        Args:
            **options: Context options (viewport, user agent, video recording)
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the browser and cleanup resources."""
        ...
