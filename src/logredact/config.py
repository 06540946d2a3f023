"""
Configuration management.

Uses Pydantic Settings for environment variable handling and validation,
with an optional YAML config file providing defaults.
"""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        config_path = os.environ.get("LOGREDACT_CONFIG_FILE")

    if config_path is None:
        # Look for logredact.yaml in common locations
        possible_paths = [
            "logredact.yaml",  # Current directory
            os.path.join("config", "logredact.yaml"),
        ]

        for path in possible_paths:
            if os.path.exists(path):
                config_path = path
                break
        else:
            return {}

    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
            return config_data
    return {}


class RulesSettings(BaseSettings):
    """Where the redaction rules come from."""

    model_config = SettingsConfigDict(env_prefix="LOGREDACT_RULES_")

    rules: str = Field(
        default="",
        description="Inline '||' separated rules, or a path to a rule file when it starts with '/'"
    )
    rules_file: Optional[Path] = Field(default=None, description="Path to a rule file")
    rules_format: Literal["auto", "lines", "json"] = Field(
        default="auto",
        description="Rule file format; 'auto' picks json for *.json files"
    )

    @field_validator("rules", mode="before")
    def strip_rules(cls, v: Any) -> Any:
        """Treat whitespace-only rules as unset."""
        if isinstance(v, str):
            return v.strip()
        return v


class IntegrationSettings(BaseSettings):
    """Logging integration configuration."""

    model_config = SettingsConfigDict(env_prefix="LOGREDACT_LOGGING_")

    handler_names: Optional[List[str]] = Field(
        default=None,
        description="Names of logging handlers to wrap; unset wraps all handlers"
    )
    redact_exceptions: bool = Field(
        default=False,
        description="Also redact formatted exception text"
    )
    redact_structlog: bool = Field(
        default=True,
        description="Add the redaction processor to the structlog chain"
    )

    @field_validator("handler_names", mode="before")
    def parse_handler_names(cls, v: Any) -> Any:
        """Accept a comma separated string as well as a list."""
        if isinstance(v, str):
            stripped = v.strip()
            if stripped.startswith("["):
                return json.loads(stripped)
            return [name.strip() for name in stripped.split(",") if name.strip()]
        return v


class Settings(BaseSettings):
    """Main settings."""

    model_config = SettingsConfigDict(env_prefix="LOGREDACT_", case_sensitive=False)

    log_level: str = Field(default="INFO", description="Log level")
    metrics_enabled: bool = Field(default=False, description="Collect Prometheus metrics")

    # Component settings
    rules: RulesSettings = Field(default_factory=RulesSettings)
    logging: IntegrationSettings = Field(default_factory=IntegrationSettings)

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is a stdlib level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with config file and env support."""

    # Load config file data
    config_data = load_config_file()

    # Config file provides defaults, env vars override
    if config_data:
        _set_env_from_config(config_data)

    return Settings()


def _set_env_from_config(config_data: Dict[str, Any]) -> None:
    """Set environment variables from config file if not already set."""
    mappings = {
        (None, "log_level"): "LOGREDACT_LOG_LEVEL",
        (None, "metrics_enabled"): "LOGREDACT_METRICS_ENABLED",
        ("rules", "rules"): "LOGREDACT_RULES_RULES",
        ("rules", "rules_file"): "LOGREDACT_RULES_RULES_FILE",
        ("rules", "rules_format"): "LOGREDACT_RULES_RULES_FORMAT",
        ("logging", "redact_exceptions"): "LOGREDACT_LOGGING_REDACT_EXCEPTIONS",
        ("logging", "redact_structlog"): "LOGREDACT_LOGGING_REDACT_STRUCTLOG",
    }

    for (section, key), env_var in mappings.items():
        if env_var not in os.environ:
            source = config_data if section is None else config_data.get(section) or {}
            value = source.get(key)
            if value is not None:
                os.environ[env_var] = str(value).lower() if isinstance(value, bool) else str(value)

    # Handle handler names specially (convert list to JSON string)
    if "LOGREDACT_LOGGING_HANDLER_NAMES" not in os.environ:
        handler_names = (config_data.get("logging") or {}).get("handler_names")
        if handler_names:
            os.environ["LOGREDACT_LOGGING_HANDLER_NAMES"] = json.dumps(handler_names)


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
