"""
Configuration: settings.yaml, filters.yaml and keybinds.yaml.
"""

from usrgrp.config.filters import (
    FilterChips,
    FilterSettings,
    FilterStore,
    GroupsFilter,
    UsersFilter,
)
from usrgrp.config.keymap import Action, KeyEvent, Keymap
from usrgrp.config.settings import AppConfig, ConfigLoader, config_dir, setup_logging

__all__ = [
    "Action",
    "AppConfig",
    "ConfigLoader",
    "FilterChips",
    "FilterSettings",
    "FilterStore",
    "GroupsFilter",
    "KeyEvent",
    "Keymap",
    "UsersFilter",
    "config_dir",
    "setup_logging",
]
