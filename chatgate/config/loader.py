"""Configuration loading utilities."""

import json
import re
from pathlib import Path
from typing import Any

from loguru import logger

from chatgate.config.schema import Config


def get_chatgate_home() -> Path:
    """Get the chatgate home directory (~/.chatgate)."""
    return Path.home() / ".chatgate"


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return get_chatgate_home() / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file or create default.

    Args:
        config_path: Optional explicit path to config file.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            data = _migrate_config(data)
            return Config.model_validate(convert_keys(data))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Using default configuration.")

    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Optional explicit path. Uses the default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    # Convert to camelCase format
    data = config.model_dump(exclude_none=True)
    data = convert_to_camel(data)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Config data migration (schema changes)
# ---------------------------------------------------------------------------


def _migrate_config(data: dict) -> dict:
    """Migrate old config formats to current."""
    # Move channels.slack.dm.requireMention -> channels.slack.requireMention
    slack = data.get("channels", {}).get("slack", {})
    dm = slack.get("dm", {})
    if isinstance(dm, dict) and "requireMention" in dm and "requireMention" not in slack:
        slack["requireMention"] = dm.pop("requireMention")
    # messages.ackReactionScope "direct" / "group-mentions" are accepted by the schema.
    return data


# ---------------------------------------------------------------------------
# Key conversion helpers
# ---------------------------------------------------------------------------

# Only identifier-like keys are converted; channel ids ("C0123ABC"), "#names"
# and "*" pass through untouched.
_CAMEL_KEY_RE = re.compile(r"^[a-z][a-zA-Z0-9]*$")


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case for Pydantic."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    if not _CAMEL_KEY_RE.match(name):
        return name
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    if not name[:1].islower():
        return name
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])
