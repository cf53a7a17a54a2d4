from __future__ import annotations

import logging
import os
import re
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rgpanel.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def expand_env_vars(config_str: str) -> str:
    """
    Expand environment variables in the format ${VAR_NAME} within a YAML string.
    Skips expansion in YAML comments (lines starting with #).

    Args:
        config_str: YAML configuration string potentially containing ${VAR_NAME} placeholders

    Returns:
        YAML string with all ${VAR_NAME} placeholders expanded to environment variable values

    Raises:
        KeyError: If a referenced environment variable is not set
    """
    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        try:
            return os.environ[var_name]
        except KeyError:
            msg = f"Environment variable '{var_name}' referenced in config.yaml but not set"
            raise KeyError(msg) from None

    lines = []
    for line in config_str.split("\n"):
        if line.lstrip().startswith("#"):
            lines.append(line)
        else:
            lines.append(_ENV_VAR_PATTERN.sub(replace_var, line))

    return "\n".join(lines)


def load_config_from_yaml(config_path: str | None = None) -> dict:
    """
    Load YAML configuration file and expand environment variables.

    Args:
        config_path: Path to config.yaml file. If None, uses CONFIG_PATH environment variable.
                     Defaults to /app/config.yaml if neither is set.

    Returns:
        Dictionary containing the parsed configuration

    Raises:
        FileNotFoundError: If config file is not found
        ValueError: If a referenced environment variable is not set
        yaml.YAMLError: If YAML file is invalid
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "/app/config.yaml")

    config_file = Path(config_path)
    if not config_file.exists():
        msg = (
            f"Configuration file not found at {config_path}\n"
            f"Use CONFIG_PATH environment variable to override location."
        )
        raise FileNotFoundError(msg)

    config_str = config_file.read_text()

    try:
        expanded_config = expand_env_vars(config_str)
    except KeyError as e:
        msg = f"Error expanding environment variables in config.yaml: {e}"
        raise ValueError(msg) from None

    config_dict = yaml.safe_load(expanded_config) or {}
    if not isinstance(config_dict, dict):
        msg = "config.yaml must contain a mapping at the top level"
        raise ValueError(msg)

    return config_dict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
    )

    # Search configuration
    search_root: str = "/data"  # Directories outside this root are rejected
    rg_binary: str = "rg"
    search_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for a single ripgrep invocation",
    )
    default_context_lines: int = Field(default=2, ge=0, le=10)

    # Security
    auth_token: str  # Required
    environment: str = "development"

    cors_enabled: bool = True
    cors_allowed_origins: list[str] = Field(default=[])

    # Observability
    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Reject levels the logging module does not know about."""
        if not isinstance(logging.getLevelName(v.upper()), int):
            msg = f"Unknown log level: {v}"
            raise ValueError(msg)
        return v.upper()

    def validate_cors_config(self) -> None:
        """Production origins must all be HTTPS."""
        if not self.cors_enabled or self.environment != "production":
            return

        for origin in self.cors_allowed_origins:
            if not origin.startswith("https://"):
                msg = f"CORS origin must be HTTPS in production: {origin}"
                raise ValueError(msg)


def _flatten_config(config_dict: dict) -> dict[str, object]:
    """Map the nested config.yaml layout onto flat Settings field names."""
    flat_config: dict[str, object] = {}

    search = config_dict.get("search")
    if isinstance(search, dict):
        if "root" in search:
            flat_config["search_root"] = search["root"]
        if "rg_binary" in search:
            flat_config["rg_binary"] = search["rg_binary"]
        if "timeout_seconds" in search:
            flat_config["search_timeout_seconds"] = search["timeout_seconds"]
        if "context_lines" in search:
            flat_config["default_context_lines"] = search["context_lines"]

    auth = config_dict.get("auth")
    if isinstance(auth, dict):
        flat_config["auth_token"] = auth.get("token")

    logging_section = config_dict.get("logging")
    if isinstance(logging_section, dict):
        flat_config["log_level"] = logging_section.get("level", "INFO")
        flat_config["log_json"] = logging_section.get("json", True)

    cors = config_dict.get("cors")
    if isinstance(cors, dict):
        flat_config["cors_enabled"] = cors.get("enabled", True)
        if "allowed_origins" in cors:
            flat_config["cors_allowed_origins"] = cors["allowed_origins"]

    flat_config["environment"] = config_dict.get("environment", "development")

    return {key: value for key, value in flat_config.items() if value is not None}


def build_settings(config_path: str | None = None) -> Settings:
    """Load settings from YAML config file with environment variable expansion."""
    try:
        config_dict = load_config_from_yaml(config_path)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(
            str(e),
            context={"config_file": config_path or os.environ.get("CONFIG_PATH")},
        ) from e

    try:
        settings = Settings(**_flatten_config(config_dict))
        settings.validate_cors_config()
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid configuration: {e}",
            context={"config_file": config_path or os.environ.get("CONFIG_PATH")},
        ) from e

    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for the running process, loaded on first use."""
    return build_settings()


def reset_settings_cache() -> None:
    """Forget cached settings so the next get_settings() call reloads (testing only)."""
    get_settings.cache_clear()
