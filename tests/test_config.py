"""Tests for run and browser configuration."""

import pytest
from pydantic import ValidationError

from flowcap.browser_config import BrowserConfig
from flowcap.config import RunConfig, settings


class TestRunConfig:
    """Test cases for RunConfig validation."""

    def test_defaults(self):
        config = RunConfig(seed_url="https://example.com/")
        assert config.project_name == "default"
        assert config.mode == "single"
        assert config.max_depth == 2
        assert config.max_pages == 50
        assert config.exclude_patterns == []
        assert config.full_page is False

    @pytest.mark.parametrize("mode", ["crawl", "single"])
    def test_seed_required(self, mode):
        with pytest.raises(ValidationError, match="seed_url is required"):
            RunConfig(mode=mode)

    @pytest.mark.parametrize("mode", ["scripted", "interactive"])
    def test_seed_optional(self, mode):
        assert RunConfig(mode=mode).seed_url is None

    def test_invalid_mode(self):
        with pytest.raises(ValidationError):
            RunConfig(mode="record", seed_url="https://example.com/")

    @pytest.mark.parametrize("field,value", [("max_pages", 0), ("max_depth", -1), ("project_name", "")])
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            RunConfig(seed_url="https://example.com/", **{field: value})

    def test_depth_zero_allowed(self):
        assert RunConfig(mode="crawl", seed_url="https://example.com/", max_depth=0).max_depth == 0


class TestBrowserConfig:
    """Test cases for BrowserConfig."""

    def test_defaults(self):
        config = BrowserConfig()
        assert config.browser_type == "chromium"
        assert config.wait_until == "networkidle"
        assert config.timeout == 30000
        assert config.connect_chrome is False

    def test_timeout_bounds(self):
        with pytest.raises(ValidationError):
            BrowserConfig(timeout=10)

    def test_from_settings_ignores_none(self):
        config = BrowserConfig.from_settings(headless=None, connect_chrome=True)
        assert config.headless == settings.HEADLESS
        assert config.cdp_url == settings.CDP_URL
        assert config.connect_chrome is True

    def test_from_settings_override(self):
        assert BrowserConfig.from_settings(headless=True).headless is True
