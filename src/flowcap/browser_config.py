"""
Browser configuration for Playwright-driven captures.

This module provides a validated Pydantic configuration model for the
browser session a capture run drives.
"""
from typing import List, Literal

from pydantic import BaseModel, Field

from flowcap.config import settings
from flowcap.constants import DEFAULT_NAVIGATION_TIMEOUT, DEFAULT_WAIT_UNTIL


class BrowserConfig(BaseModel):
    """
    Configuration for the Playwright-based BrowserSession.

    All fields are validated by Pydantic to ensure type safety and valid values.
    """

    headless: bool = Field(
        default=False,
        description="Run browser in headless mode (no visible UI)"
    )

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to launch"
    )

    connect_chrome: bool = Field(
        default=False,
        description="Attach to a running Chrome over CDP instead of launching a browser"
    )

    cdp_url: str = Field(
        default="http://localhost:9222",
        description="Remote debugging endpoint used when connect_chrome is set"
    )

    timeout: int = Field(
        default=DEFAULT_NAVIGATION_TIMEOUT,
        description="Page load timeout in milliseconds",
        ge=1000,
        le=300000
    )

    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = Field(
        default=DEFAULT_WAIT_UNTIL,
        description="When to consider navigation complete"
    )

    viewport_width: int = Field(default=1280, ge=320)
    viewport_height: int = Field(default=800, ge=240)

    launch_args: List[str] = Field(
        default_factory=list,
        description="Additional browser launch arguments"
    )

    @classmethod
    def from_settings(cls, **overrides) -> "BrowserConfig":
        """Build a config from environment settings, with explicit overrides."""
        values = {
            "headless": settings.HEADLESS,
            "cdp_url": settings.CDP_URL,
            "timeout": settings.NAVIGATION_TIMEOUT,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
