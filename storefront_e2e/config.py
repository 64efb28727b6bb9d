"""
Configuration management for storefront_e2e.

Loads/saves TOML configuration for the browser target, run timing and
parallelism, and logging.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field


class TargetConfig(BaseModel):
    """Browser target configuration."""

    base_url: str = Field(default="https://www.saucedemo.com", description="Store base URL")
    browser: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium", description="Browser engine"
    )
    headless: bool = Field(default=True, description="Run the browser without a window")
    navigation_timeout_ms: int = Field(
        default=30000, description="Upper bound for page loads inside the browser"
    )


class RunConfig(BaseModel):
    """Run timing and scheduling configuration."""

    step_timeout_ms: int = Field(default=10000, gt=0, description="Bounded wait per step")
    assertion_timeout_ms: int = Field(
        default=5000, ge=0, description="Window in which assertions re-read state (0=single read)"
    )
    poll_interval_ms: int = Field(default=100, gt=0, description="Assertion re-read interval")
    workers: int = Field(default=4, ge=1, description="Cases run concurrently within a suite")
    report_path: Optional[str] = Field(default=None, description="JSON report output path")

    def to_settings(self) -> "RunSettings":
        """Convert to runtime settings in seconds."""
        return RunSettings(
            step_timeout_s=self.step_timeout_ms / 1000.0,
            assertion_timeout_s=self.assertion_timeout_ms / 1000.0,
            poll_interval_s=self.poll_interval_ms / 1000.0,
            workers=self.workers,
        )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    log_dir: str = Field(default="~/storefront_e2e_logs", description="Directory for log files")
    log_to_console: bool = Field(default=True, description="Mirror log records to stderr")


class Config(BaseModel):
    """Complete storefront_e2e configuration."""

    target: TargetConfig = Field(default_factory=TargetConfig)
    run: RunConfig = Field(default_factory=RunConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@dataclass(frozen=True)
class RunSettings:
    """
    Runtime knobs passed to the precondition runner and step executor.

    Attributes:
        step_timeout_s: Bound on each action (including quiescence) and each read.
        assertion_timeout_s: How long an assertion keeps re-reading before failing.
        poll_interval_s: Delay between assertion re-reads.
        workers: Maximum concurrent cases within a suite.
    """

    step_timeout_s: float = 10.0
    assertion_timeout_s: float = 0.0
    poll_interval_s: float = 0.1
    workers: int = 1


def get_config_path() -> Path:
    """Get default configuration file path."""
    config_home = os.getenv("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(config_home) / "storefront_e2e" / "config.toml"


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load configuration from TOML file.

    Args:
        path: Configuration file path. If None, uses default location.

    Returns:
        Loaded configuration object.
    """
    if path is None:
        path = get_config_path()

    if not path.exists():
        # Return default config if file doesn't exist
        return Config()

    import tomli

    with open(path, "rb") as f:
        data = tomli.load(f)

    return Config(**data)


def save_config(config: Config, path: Optional[Path] = None) -> None:
    """
    Save configuration to TOML file.

    Args:
        config: Configuration object to save.
        path: Configuration file path. If None, uses default location.
    """
    if path is None:
        path = get_config_path()

    path.parent.mkdir(parents=True, exist_ok=True)

    import tomli_w

    # TOML has no null; drop unset optionals
    with open(path, "wb") as f:
        tomli_w.dump(config.model_dump(exclude_none=True), f)
