"""Project logging package.

Contains internal logging utilities (event template catalog + BotLogger).
Avoid importing stdlib logging through this package name externally.
"""

from .event_catalog import TemplateCatalog, catalog  # noqa: F401
from .logger import BotLogger, logger  # noqa: F401

__all__ = ["BotLogger", "logger", "TemplateCatalog", "catalog"]
