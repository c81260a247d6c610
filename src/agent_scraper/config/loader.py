"""
Configuration loader with YAML file support and environment variable overrides.

Supports loading from:
1. Default values (defined in settings.py)
2. YAML configuration file
3. Environment variables
4. Explicit overrides, e.g. from command-line options (highest priority)

Environment variables use the pattern: AGENT_SCRAPER__{SECTION}__{KEY}
Example: AGENT_SCRAPER__CRAWLER__AGENT_LIMIT=200
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from agent_scraper.config.settings import Settings
from agent_scraper.core.exceptions import ConfigurationError


ENV_PREFIX = "AGENT_SCRAPER"

# Module-level settings cache
_settings_instance: Settings | None = None


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries, with override taking precedence.

    Args:
        base: Base dictionary to merge into
        override: Dictionary with values to override

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _parse_env_value(value: str) -> Any:
    """Parse an environment variable string into bool, None, int, float or str."""
    lowered = value.lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    if lowered in ("none", "null", ""):
        return None

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def _load_env_overrides(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """
    Load configuration overrides from environment variables.

    Variables follow {PREFIX}__{SECTION}__{KEY}, for example
    AGENT_SCRAPER__CRAWLER__CONCURRENCY=3 or AGENT_SCRAPER__LOGGING__LEVEL=DEBUG.
    """
    overrides: dict[str, Any] = {}
    prefix_with_sep = f"{prefix}__"

    for key, value in os.environ.items():
        if not key.startswith(prefix_with_sep):
            continue

        key_path = key[len(prefix_with_sep):].lower().split("__")
        if len(key_path) < 2:
            continue

        current = overrides
        for part in key_path[:-1]:
            current = current.setdefault(part, {})

        current[key_path[-1]] = _parse_env_value(value)

    return overrides


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If the file is not a YAML mapping
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in configuration file: {e}",
            details={"path": str(path)},
        ) from e

    # Handle empty files
    if content is None:
        return {}

    if not isinstance(content, dict):
        raise ConfigurationError(
            f"Configuration file must contain a mapping, got: {type(content).__name__}",
            details={"path": str(path)},
        )

    return content


def load_config(
    config_path: Path | str | None = None,
    overrides: dict[str, Any] | None = None,
    env_prefix: str = ENV_PREFIX,
) -> Settings:
    """
    Load configuration from YAML, environment variables and overrides.

    Args:
        config_path: Path to YAML configuration file. If None, uses defaults only.
        overrides: Nested mapping applied last, e.g. {"crawler": {"agent_limit": 10}}
        env_prefix: Prefix for environment variables

    Returns:
        Validated Settings instance

    Raises:
        FileNotFoundError: If config_path is specified but doesn't exist
        ConfigurationError: If the file or the merged values are invalid
    """
    config_data: dict[str, Any] = {}

    if config_path is not None:
        config_data = _deep_merge(config_data, _load_yaml_file(Path(config_path)))

    config_data = _deep_merge(config_data, _load_env_overrides(env_prefix))

    if overrides:
        config_data = _deep_merge(config_data, overrides)

    try:
        return Settings(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def get_settings(
    config_path: Path | str | None = None,
    reload: bool = False,
) -> Settings:
    """
    Get the global Settings instance, loading it on first use.

    Args:
        config_path: YAML file, only used on first load or reload
        reload: Force reloading the configuration
    """
    global _settings_instance

    if _settings_instance is None or reload:
        _settings_instance = load_config(config_path)

    return _settings_instance


def reset_settings() -> None:
    """Reset the cached settings instance."""
    global _settings_instance
    _settings_instance = None


def dump_config(settings: Settings) -> str:
    """Render settings as YAML."""
    return yaml.safe_dump(
        settings.model_dump(mode="json"),
        sort_keys=False,
        default_flow_style=False,
    )
