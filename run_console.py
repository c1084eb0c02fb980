#!/usr/bin/env python3
"""
run_console.py — Start the user and group manager.

Usage:
    python run_console.py [config_dir]

Flow:
  1. Load settings.yaml from the config directory
  2. Route logging to the log file
  3. Load records, filters and key bindings
  4. Run the full-screen console until Quit
"""

import asyncio
import logging
import sys

import yaml

from usrgrp.config import ConfigLoader, setup_logging
from usrgrp.console import create_manager_console
from usrgrp.session import Controller

logger = logging.getLogger("usrgrp")


async def run_console(config_dir=None):
    """Boot the controller and run the console."""
    config = ConfigLoader.load(config_dir)
    config.config_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(config)
    logger.info(f"Starting with config dir {config.config_dir}")

    controller = Controller.from_config(config)
    controller.start()

    console = create_manager_console(controller)
    await console.run()
    logger.info("Console closed")


def main():
    args = sys.argv[1:]
    config_dir = args[0] if args else None

    try:
        asyncio.run(run_console(config_dir))
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Startup failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted")


if __name__ == "__main__":
    main()
