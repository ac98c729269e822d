"""Configuration module for the step runner."""
from config.models import (
    ApplicationConfig,
    BrowserConfig,
    Credential,
    ExecutionConfig,
    ReportingConfig,
    RunnerConfig,
    load_config,
)

__all__ = [
    "ApplicationConfig",
    "BrowserConfig",
    "Credential",
    "ExecutionConfig",
    "ReportingConfig",
    "RunnerConfig",
    "load_config",
]
