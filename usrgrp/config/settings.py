"""
settings.py — Application settings and config directory resolution.

Config directory (first match wins):
    $XDG_CONFIG_HOME/UsrGrpManager
    ~/.config/UsrGrpManager
    ~/UsrGrpManager

settings.yaml example:
    paths:
      passwd: /etc/passwd
      group: /etc/group
      shadow: /etc/shadow
      shells: /etc/shells
    regular_uid_min: 1000
    regular_uid_max: 1999
    system_id_threshold: 1000
    sudo_group: wheel
    credential_timeout: 0      # seconds, 0 = until exit
    log_file: usrgrp.log
    log_level: INFO
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from usrgrp.records.source import SourcePaths

APP_DIR_NAME = "UsrGrpManager"
SETTINGS_FILE = "settings.yaml"
FILTERS_FILE = "filters.yaml"
KEYBINDS_FILE = "keybinds.yaml"

DEFAULT_SUDO_GROUP = "wheel"
SUDO_GROUP_ENV = "UGM_SUDO_GROUP"


def config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_DIR_NAME
    home = Path.home()
    if (home / ".config").is_dir():
        return home / ".config" / APP_DIR_NAME
    return home / APP_DIR_NAME


@dataclass
class AppConfig:
    config_dir: Path
    paths: SourcePaths = field(default_factory=SourcePaths)
    regular_uid_min: int = 1000
    regular_uid_max: int = 1999
    system_id_threshold: int = 1000
    sudo_group: str = DEFAULT_SUDO_GROUP
    credential_timeout: float = 0
    log_file: Optional[Path] = None
    log_level: str = "INFO"

    @property
    def filters_path(self) -> Path:
        return self.config_dir / FILTERS_FILE

    @property
    def keybinds_path(self) -> Path:
        return self.config_dir / KEYBINDS_FILE


class ConfigLoader:
    @classmethod
    def load(cls, directory: Optional[Path] = None) -> AppConfig:
        directory = Path(directory) if directory else config_dir()
        path = directory / SETTINGS_FILE
        raw = {}
        if path.exists():
            with open(path) as f:
                raw = yaml.safe_load(f) or {}
        return cls._parse(raw, directory)

    @classmethod
    def _parse(cls, raw: dict, directory: Path) -> AppConfig:
        paths_raw = raw.get("paths", {}) or {}
        defaults = SourcePaths()
        paths = SourcePaths(
            passwd=Path(paths_raw.get("passwd", defaults.passwd)),
            group=Path(paths_raw.get("group", defaults.group)),
            shadow=Path(paths_raw.get("shadow", defaults.shadow)),
            shells=Path(paths_raw.get("shells", defaults.shells)),
        )

        log_file = raw.get("log_file", "usrgrp.log")
        if log_file:
            log_file = Path(log_file)
            if not log_file.is_absolute():
                log_file = directory / log_file

        regular_min = int(raw.get("regular_uid_min", 1000))
        regular_max = int(raw.get("regular_uid_max", 1999))
        if regular_min > regular_max:
            raise ValueError(
                f"regular_uid_min ({regular_min}) is above regular_uid_max ({regular_max})"
            )

        return AppConfig(
            config_dir=directory,
            paths=paths,
            regular_uid_min=regular_min,
            regular_uid_max=regular_max,
            system_id_threshold=int(raw.get("system_id_threshold", 1000)),
            sudo_group=os.environ.get(SUDO_GROUP_ENV) or raw.get("sudo_group", DEFAULT_SUDO_GROUP),
            credential_timeout=float(raw.get("credential_timeout", 0) or 0),
            log_file=log_file or None,
            log_level=str(raw.get("log_level", "INFO")).upper(),
        )


def setup_logging(config: AppConfig) -> None:
    """Route log records to the log file; the terminal belongs to the UI."""
    handlers = []
    if config.log_file:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.log_file, encoding="utf-8"))
    else:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
    )
