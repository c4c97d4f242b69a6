from dotenv import load_dotenv
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional
import os

from pydantic import BaseModel, Field, model_validator

from flowcap.constants import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_PAGES,
    DEFAULT_PROJECT_NAME,
)

load_dotenv()  # Loads variables from .env file


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    CAPTURES_DIR = Path(os.getenv("FLOWCAP_CAPTURES_DIR", "captures"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    HEADLESS = _env_flag("FLOWCAP_HEADLESS")
    CDP_URL = os.getenv("FLOWCAP_CDP_URL", "http://localhost:9222")
    NAVIGATION_TIMEOUT = int(os.getenv("FLOWCAP_NAVIGATION_TIMEOUT", "30000"))


settings = Settings()


CaptureMode = Literal["single", "scripted", "interactive", "crawl"]


class RunConfig(BaseModel):
    """
    Options for a single capture run.

    One run opens one browser session, records steps in one of the four
    modes and merges the result into the project's manifest.
    """

    project_name: str = Field(
        default=DEFAULT_PROJECT_NAME,
        min_length=1,
        description="Project whose manifest receives the captured flow"
    )

    flow_name: Optional[str] = Field(
        default=None,
        description="Display name of the captured flow; its slug is the flow id"
    )

    parent_id: Optional[str] = Field(
        default=None,
        description="Id of an existing flow to nest the new flow under (non-crawl modes)"
    )

    seed_url: Optional[str] = Field(
        default=None,
        description="URL to open before capturing; the crawl starting point in crawl mode"
    )

    mode: CaptureMode = Field(
        default="single",
        description="Capture mode"
    )

    steps: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Scripted actions, e.g. [{'action': 'capture', 'name': 'Home'}]"
    )

    max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=0,
        description="Maximum link depth from the seed page in crawl mode"
    )

    max_pages: int = Field(
        default=DEFAULT_MAX_PAGES,
        ge=1,
        description="Maximum number of pages captured in crawl mode"
    )

    exclude_patterns: List[str] = Field(
        default_factory=list,
        description="Plain substrings; any URL containing one is never crawled"
    )

    full_page: bool = Field(
        default=False,
        description="Capture the full scrollable page instead of the viewport"
    )

    @model_validator(mode="after")
    def _check_seed_url(self) -> "RunConfig":
        if self.mode in ("crawl", "single") and not self.seed_url:
            raise ValueError(f"seed_url is required for {self.mode} mode")
        return self
