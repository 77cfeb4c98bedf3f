"""Configuration loading utilities."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..errors.internal import ConfigError
from ..logs.logger import logger
from .model import BotConfig

CONFIG_ENV_VAR = "IRCBOT_CONF_FILE"
DEFAULT_CONFIG_FILE = "ircbot.conf"


def get_config_path() -> str:
    return os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE)


class ConfigLoader:
    """Loads and validates the JSON configuration file."""

    def __init__(self, path: str | os.PathLike[str] | None = None) -> None:
        if path is not None and not isinstance(path, str | os.PathLike):
            raise TypeError("path must be str or os.PathLike")
        self.path = Path(path if path is not None else get_config_path())

    def load_raw(self) -> dict[str, Any]:
        """Read the file and return its top-level JSON object.

        Raises:
            ConfigError: If the file is missing, unreadable or not a JSON object.
        """
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ConfigError(
                f"configuration file not found: {self.path}", data={"path": str(self.path)}
            ) from e
        except (OSError, ValueError) as e:
            raise ConfigError(
                f"configuration file unreadable: {self.path}: {e}",
                data={"path": str(self.path)},
            ) from e
        if not isinstance(data, dict):
            raise ConfigError(
                f"configuration root must be an object: {self.path}",
                data={"path": str(self.path)},
            )
        return data

    def load(self) -> BotConfig:
        """Load and validate the configuration.

        Raises:
            ConfigError: On any read or validation failure.
        """
        raw = self.load_raw()
        try:
            config = BotConfig.from_dict(raw)
        except ValidationError as e:
            logger.log_event(
                "config",
                "invalid",
                level=logging.ERROR,
                path=str(self.path),
                errors=e.error_count(),
            )
            raise ConfigError(
                f"invalid configuration in {self.path}: {e}",
                data={"path": str(self.path), "errors": e.errors()},
            ) from e
        logger.log_event(
            "config",
            "loaded",
            path=str(self.path),
            connections=len(config.connections),
        )
        return config


def load_config(path: str | os.PathLike[str] | None = None) -> BotConfig:
    return ConfigLoader(path).load()
