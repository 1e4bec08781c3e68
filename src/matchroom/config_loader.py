"""Configuration loader and validator."""

from pathlib import Path
from typing import Any, Optional

import yaml

from matchroom.exceptions import ConfigError
from matchroom.paths import get_default_db_path

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def load_config(path: str) -> dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML config file

    Returns:
        Dictionary with configuration values

    Raises:
        ConfigError: If file not found or invalid YAML
    """
    config_file = Path(path)

    if not config_file.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}")

    if config is None:
        raise ConfigError("Config file is empty")

    if not isinstance(config, dict):
        raise ConfigError("Config file must contain a mapping at the top level")

    return config


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """Validate configuration values.

    Args:
        config: Configuration dictionary

    Returns:
        Validated and normalized configuration

    Raises:
        ConfigError: If validation fails
    """
    validated = {}

    # Database path (optional, default under the data dir)
    db_path = config.get("database_path")
    if db_path is None:
        db_path = str(get_default_db_path())
    elif not isinstance(db_path, str) or not db_path.strip():
        raise ConfigError("database_path must be a non-empty string")
    validated["database_path"] = db_path

    # Matches per pairing in round robin (optional, default 1)
    matches_per_player = config.get("matches_per_player", 1)
    if (
        isinstance(matches_per_player, bool)
        or not isinstance(matches_per_player, int)
        or matches_per_player < 1
    ):
        raise ConfigError("matches_per_player must be a positive integer")
    validated["matches_per_player"] = matches_per_player

    # Auto advance to finals (optional, default True)
    auto_advance = config.get("auto_advance", True)
    if not isinstance(auto_advance, bool):
        raise ConfigError("auto_advance must be true or false")
    validated["auto_advance"] = auto_advance

    # Random seed for 2v2 team shuffles (optional, default None)
    random_seed = config.get("random_seed")
    if random_seed is not None and (isinstance(random_seed, bool) or not isinstance(random_seed, int)):
        raise ConfigError("random_seed must be an integer")
    validated["random_seed"] = random_seed

    # Log level (optional, default INFO)
    log_level = str(config.get("log_level", "INFO")).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got '{log_level}'")
    validated["log_level"] = log_level

    return validated


def load_and_validate_config(path: Optional[str] = None) -> dict[str, Any]:
    """Load and validate configuration in one step.

    Args:
        path: Path to YAML config file, or None for the defaults

    Returns:
        Validated configuration dictionary

    Raises:
        ConfigError: If loading or validation fails
    """
    if path is None:
        return validate_config({})
    config = load_config(path)
    return validate_config(config)
