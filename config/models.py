"""Pydantic configuration models for the step runner."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from exceptions import ConfigFileNotFoundError


# Load .env file if present
load_dotenv()

DEFAULT_BASE_URL = "https://parabank.parasoft.com/parabank"

# Semantic target -> CSS selector candidates, tried in order
DEFAULT_SELECTORS: Dict[str, List[str]] = {
    "username": ['input[name="username"]', "#username"],
    "password": ['input[name="password"]', "#password"],
    "login-button": ['input[type="submit"][value="Log In"]', 'input[value="Log In"]', 'button:has-text("Log In")'],
    "open-account-button": ['input[value="Open New Account"]', 'button:has-text("Open New Account")'],
    "submit-button": ['input[type="submit"]', 'button[type="submit"]', 'button:has-text("Submit")'],
    "account-type": ['select[name="type"]', "select#type"],
    "source-account": ['select[name="fromAccountId"]', "select#fromAccountId"],
}

ENVIRONMENT_HOSTS: Dict[str, str] = {
    "development": "https://parabank.parasoft.com",
    "staging": "https://staging-parabank.parasoft.com",
    "production": "https://parabank.parasoft.com",
}


class Credential(BaseModel):
    """Username/password pair."""

    username: str = ""
    password: str = ""


class BrowserConfig(BaseModel):
    """Browser automation configuration."""

    browser: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to use",
    )
    headless: bool = Field(
        default=True,
        description="Run browser in headless mode",
    )
    viewport_width: int = Field(default=1440, ge=800, le=3840)
    viewport_height: int = Field(default=900, ge=600, le=2160)
    slow_mo: int = Field(
        default=0,
        ge=0,
        le=5000,
        description="Slow down browser operations by this many ms",
    )
    action_timeout_ms: float = Field(
        default=10000,
        gt=0,
        description="Timeout for a single click/fill/select",
    )
    navigation_timeout_ms: float = Field(
        default=30000,
        gt=0,
        description="Timeout for page navigation",
    )
    max_text_length: int = Field(
        default=20000,
        ge=100,
        description="Maximum page text captured per snapshot",
    )


class ApplicationConfig(BaseModel):
    """Target application under test."""

    name: str = Field(default="ParaBank Demo")
    base_url: str = Field(default=DEFAULT_BASE_URL)
    login_url: Optional[str] = None
    overview_url: Optional[str] = None
    open_account_url: Optional[str] = None
    valid_credentials: Credential = Field(default_factory=Credential)
    selectors: Dict[str, List[str]] = Field(default_factory=lambda: {k: list(v) for k, v in DEFAULT_SELECTORS.items()})

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base_url doesn't have trailing slash."""
        return v.rstrip("/")

    @field_validator("selectors", mode="before")
    @classmethod
    def merge_selectors(cls, v: Any) -> Dict[str, List[str]]:
        """Overlay user selectors on the defaults; a string is a single candidate."""
        merged = {k: list(vals) for k, vals in DEFAULT_SELECTORS.items()}
        for key, value in (v or {}).items():
            merged[key] = [value] if isinstance(value, str) else list(value)
        return merged

    @model_validator(mode="before")
    @classmethod
    def load_from_env(cls, data: Any) -> Any:
        """Load values from environment variables if not explicitly set."""
        if not isinstance(data, dict):
            return data
        env_mapping = {
            "base_url": "BASE_URL",
            "login_url": "LOGIN_URL",
            "overview_url": "OVERVIEW_URL",
            "open_account_url": "OPEN_ACCOUNT_URL",
        }
        for field_name, env_var in env_mapping.items():
            if data.get(field_name) is None:
                env_value = os.getenv(env_var)
                if env_value:
                    data[field_name] = env_value

        if data.get("valid_credentials") is None:
            username = os.getenv("VALID_USERNAME")
            password = os.getenv("VALID_PASSWORD")
            if username or password:
                data["valid_credentials"] = {"username": username or "", "password": password or ""}
        return data

    @model_validator(mode="after")
    def derive_page_urls(self) -> "ApplicationConfig":
        """Fill page URLs that were not configured from the base URL."""
        if not self.login_url:
            self.login_url = f"{self.base_url}/index.htm"
        if not self.overview_url:
            self.overview_url = f"{self.base_url}/overview.htm"
        if not self.open_account_url:
            self.open_account_url = f"{self.base_url}/openaccount.htm"
        return self

    def default_test_data(self) -> Dict[str, str]:
        """Page URLs every test case can fall back on; a case's own testData wins."""
        return {
            "baseUrl": self.base_url,
            "loginUrl": self.login_url,
            "overviewUrl": self.overview_url,
            "openAccountUrl": self.open_account_url,
        }

    def selectors_for(self, target: str) -> List[str]:
        return list(self.selectors.get(target, []))

    def with_host(self, host: str) -> "ApplicationConfig":
        """Return a copy whose URLs point at another host, keeping their paths."""
        def rehost(url: Optional[str]) -> Optional[str]:
            if not url or "://" not in url:
                return url
            rest = url.split("://", 1)[1]
            path = rest.split("/", 1)[1] if "/" in rest else ""
            return f"{host.rstrip('/')}/{path}" if path else host.rstrip("/")

        return self.model_copy(update={
            "base_url": rehost(self.base_url),
            "login_url": rehost(self.login_url),
            "overview_url": rehost(self.overview_url),
            "open_account_url": rehost(self.open_account_url),
        })


class ExecutionConfig(BaseModel):
    """Pacing and lane settings for a run."""

    step_delay_ms: int = Field(
        default=500,
        ge=0,
        le=60000,
        description="Pause after each step so page transitions settle",
    )
    login_settle_ms: int = Field(
        default=2000,
        ge=0,
        le=60000,
        description="Pause after a login click before reading the page",
    )
    case_delay_ms: int = Field(
        default=2000,
        ge=0,
        le=60000,
        description="Pause between test cases",
    )
    parallel_workers: int = Field(
        default=1,
        ge=1,
        le=16,
        description="Independent browser sessions running cases concurrently",
    )
    session_start_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts to launch the browser session before aborting",
    )


class ReportingConfig(BaseModel):
    """Reporting and output configuration."""

    reports_folder: Path = Field(
        default=Path("./reports"),
        description="Directory for saving reports",
    )
    output_format: Literal["json", "junit", "all", "none"] = Field(
        default="json",
        description="Report output format",
    )

    @field_validator("reports_folder", mode="before")
    @classmethod
    def convert_to_path(cls, v: Any) -> Path:
        """Convert string to Path."""
        if isinstance(v, str):
            return Path(v)
        return v


class RunnerConfig(BaseModel):
    """Root configuration model combining all config sections."""

    environment: Literal["development", "staging", "production"] = Field(
        default_factory=lambda: os.getenv("TEST_ENV", "development"),
        validate_default=True,
        description="Environment preset selecting the target host",
    )
    application: ApplicationConfig = Field(default_factory=ApplicationConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)

    @model_validator(mode="after")
    def apply_environment(self) -> "RunnerConfig":
        """Point the application at the staging host when that environment is chosen."""
        if self.environment == "staging" and ENVIRONMENT_HOSTS["production"] in self.application.base_url:
            self.application = self.application.with_host(ENVIRONMENT_HOSTS["staging"])
        return self

    def environment_info(self) -> Dict[str, str]:
        return {
            "environment": self.environment,
            "application": self.application.name,
            "base_url": self.application.base_url,
        }


def load_config(
    config_path: Optional[Path] = None,
    cli_overrides: Optional[dict[str, Any]] = None,
) -> RunnerConfig:
    """
    Load configuration from file with CLI overrides.

    Priority (highest to lowest):
    1. CLI arguments
    2. Config file
    3. Environment variables (fill only what the file leaves unset)
    4. Defaults
    """
    config_data: dict[str, Any] = {}

    explicit = config_path is not None
    if config_path is None:
        config_path = Path("config.json")

    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.suffix in {".yaml", ".yml"}:
                import yaml
                config_data = yaml.safe_load(f) or {}
            else:
                config_data = json.load(f)
    elif explicit:
        raise ConfigFileNotFoundError(str(config_path))

    config = RunnerConfig.model_validate(config_data)

    # Apply CLI overrides
    if cli_overrides:
        config_dict = config.model_dump()
        _apply_overrides(config_dict, cli_overrides)
        config = RunnerConfig.model_validate(config_dict)

    return config


def _apply_overrides(config_dict: dict[str, Any], overrides: dict[str, Any]) -> None:
    """Apply CLI overrides to config dictionary."""
    override_mapping = {
        "browser": ("browser", "browser"),
        "headless": ("browser", "headless"),
        "parallel": ("execution", "parallel_workers"),
        "step_delay": ("execution", "step_delay_ms"),
        "case_delay": ("execution", "case_delay_ms"),
        "environment": ("environment", None),
        "output_format": ("reporting", "output_format"),
        "reports_dir": ("reporting", "reports_folder"),
        "base_url": ("application", "base_url"),
    }

    for key, value in overrides.items():
        if value is None:
            continue

        if key == "headful":
            config_dict["browser"]["headless"] = not value
            continue

        if key == "base_url":
            # Page URLs follow the new base unless set explicitly elsewhere
            config_dict["application"]["login_url"] = None
            config_dict["application"]["overview_url"] = None
            config_dict["application"]["open_account_url"] = None

        mapping = override_mapping.get(key)
        if mapping:
            section, field = mapping
            if field is None:
                config_dict[section] = value
            else:
                config_dict[section][field] = value
