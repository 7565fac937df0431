"""
Settings - Pydantic models for type-safe configuration.

This module defines all configuration settings as Pydantic models,
providing validation, type hints, and automatic environment variable loading.

Example:
    >>> from synthqa.config import Settings, load_config
    >>> settings = load_config()  # Loads from env, yaml, and defaults
    >>> print(settings.browser.engine)
    'chromium'
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrowserSettings(BaseModel):
    """
    Browser acquisition settings.

    Attributes:
        engine: Browser engine to launch locally
        headless: Run browser in headless mode
        timeout_ms: Per-operation timeout for step actions
        launch_timeout_ms: Timeout for launching a local browser
        remote_endpoint: WebSocket endpoint of a remote browser; when set,
            attaching to it is mandatory and no local launch is attempted
        remote_token: Optional token appended to the remote endpoint
        connect_timeout_ms: Timeout for attaching to the remote endpoint
        viewport_width: Browser viewport width in pixels
        viewport_height: Browser viewport height in pixels
        user_agent: Custom user agent string
        record_video: Record a video of each run
    """
    engine: Literal["chromium", "firefox", "webkit"] = "chromium"
    headless: bool = True
    timeout_ms: int = Field(default=30000, ge=1000, le=300000)
    launch_timeout_ms: int = Field(default=30000, ge=1000, le=300000)

    remote_endpoint: Optional[str] = None
    remote_token: Optional[SecretStr] = None
    connect_timeout_ms: int = Field(default=60000, ge=1000, le=300000)

    viewport_width: int = Field(default=1280, ge=320, le=3840)
    viewport_height: int = Field(default=720, ge=240, le=2160)
    user_agent: Optional[str] = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    )
    record_video: bool = True


class ExecutionSettings(BaseModel):
    """
    Execution behavior settings.

    Attributes:
        settle_ms: Pause after each successful step before the screenshot
        output_dir: Root directory for screenshots, videos and stored records
        store: Persistence backend for executions and scripts
        public_base_url: Prefix used to build artifact URLs; file URIs
            are returned when unset
    """
    settle_ms: int = Field(default=500, ge=0, le=10000)
    output_dir: str = "./output"
    store: Literal["memory", "json"] = "json"
    public_base_url: Optional[str] = None


class ServerSettings(BaseModel):
    """HTTP API settings."""
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseModel):
    """
    Logging configuration.

    Attributes:
        level: Log level
        file: Log file path (None for console only)
        json_format: Use JSON format for the file handler
    """
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file: Optional[str] = None
    json_format: bool = False


class Settings(BaseSettings):
    """
    Root settings container - single source of truth for all configuration.

    Settings are loaded in this priority order (highest to lowest):
    1. Explicit values passed to constructor
    2. Environment variables (prefixed with SYNTHQA__)
    3. Config file (YAML)
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="SYNTHQA__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    debug: bool = False

    def merge_with(self, overrides: dict) -> "Settings":
        """
        Create a new Settings instance with overrides applied.

        Args:
            overrides: Dictionary of values to override

        Returns:
            New Settings instance with overrides applied
        """
        current = self.model_dump()

        def deep_merge(base: dict, updates: dict) -> dict:
            for key, value in updates.items():
                if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                    deep_merge(base[key], value)
                else:
                    base[key] = value
            return base

        merged = deep_merge(current, overrides)
        return Settings(**merged)
