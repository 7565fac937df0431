"""
Browser-related exceptions.
"""

from synthqa.exceptions.base import SynthQAError


class BrowserError(SynthQAError):
    """Base exception for browser-related errors."""
    pass


class BrowserAcquisitionError(BrowserError):
    """
    The browser for a run could not be obtained.

    This is a fatal setup error: the run is aborted before any step executes.
    """
    pass


class BrowserLaunchError(BrowserAcquisitionError):
    """
    Error launching a local browser process.

    Raised when the browser fails to start, which could be due to:
    - Missing browser binaries
    - Invalid browser options
    - Resource constraints
    """
    pass


class BrowserConnectionError(BrowserAcquisitionError):
    """
    Error attaching to a remote browser endpoint.

    Raised when a configured remote endpoint cannot be reached. There is
    no fallback to a local launch.
    """

    def __init__(self, message: str, endpoint: str | None = None):
        super().__init__(message, {"endpoint": endpoint} if endpoint else None)
        self.endpoint = endpoint


class BrowserNotStartedError(BrowserError):
    """Raised when a page or context is requested before launch/connect."""
    pass
