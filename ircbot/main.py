#!/usr/bin/env python3
"""
Main entry point for the IRC bot runner
"""

import asyncio
import sys

from .bot.core import Bot
from .config import get_config_path, load_config
from .errors.handling import log_error
from .errors.internal import ConfigError

# Configure logging after imports to prevent other modules from configuring it
from .logging_config import LoggerConfigurator

log = LoggerConfigurator().configure()


async def main(config_path: str | None = None) -> None:
    """Load the configuration, connect every server and run until they stop.

    Raises:
        SystemExit: If the configuration cannot be loaded.
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        log_error("Configuration error", e, {"path": config_path or get_config_path()})
        sys.exit(1)
    bot = Bot.from_config(config)
    try:
        await bot.run()
    except asyncio.CancelledError:
        raise
    except Exception as e:
        log_error("Main application error", e)
        sys.exit(1)
    finally:
        await bot.shutdown()
        log.info("Application shutdown complete")


def check_config(config_path: str | None = None) -> int:
    """Validate the configuration without connecting; return an exit code."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        log_error("Configuration check failed", e)
        return 1
    log.info(
        f"Configuration OK - {len(config.connections)} connection(s) configured"
    )
    return 0


def run() -> None:
    """Synchronous entry point for the application.

    ``--check-config`` validates the configuration and exits.

    Raises:
        SystemExit: If a critical error occurs during execution.
    """
    if len(sys.argv) > 1 and sys.argv[1] == "--check-config":
        sys.exit(check_config())
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(0)
    except asyncio.CancelledError:
        sys.exit(0)
    except Exception as e:
        log_error("Top-level error", e)
        sys.exit(1)


if __name__ == "__main__":
    run()
