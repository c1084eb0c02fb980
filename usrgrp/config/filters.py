"""
filters.py — Persistent filter settings (filters.yaml).

Example:
    users_filter: human        # none | human | system
    groups_filter: none        # none | user | system
    chips:
      inactive: false
      no_home: false
      locked: false
      no_password: false
      expired: false
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("usrgrp.config")

TRUE_STRINGS = {"1", "true", "yes", "on"}


class UsersFilter(str, Enum):
    NONE = "none"
    HUMAN = "human"
    SYSTEM = "system"


class GroupsFilter(str, Enum):
    NONE = "none"
    USER = "user"
    SYSTEM = "system"


# Names written by earlier releases of the tool
_USERS_ALIASES = {"onlyuserids": UsersFilter.HUMAN, "onlysystemids": UsersFilter.SYSTEM}
_GROUPS_ALIASES = {"onlyusergids": GroupsFilter.USER, "onlysystemgids": GroupsFilter.SYSTEM}

CHIP_NAMES = ("inactive", "no_home", "locked", "no_password", "expired")


@dataclass
class FilterChips:
    """User-only conditions. Every enabled chip must hold."""
    inactive: bool = False
    no_home: bool = False
    locked: bool = False
    no_password: bool = False
    expired: bool = False

    def toggle(self, name: str) -> None:
        setattr(self, name, not getattr(self, name))


@dataclass
class FilterSettings:
    users_filter: UsersFilter = UsersFilter.NONE
    groups_filter: GroupsFilter = GroupsFilter.NONE
    chips: FilterChips = field(default_factory=FilterChips)

    def copy(self) -> FilterSettings:
        return replace(self, chips=replace(self.chips))

    def to_dict(self) -> dict:
        return {
            "users_filter": self.users_filter.value,
            "groups_filter": self.groups_filter.value,
            "chips": asdict(self.chips),
        }


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_STRINGS


def _parse_enum(value: Any, enum_cls, aliases: dict):
    text = str(value or "").strip().lower()
    if text in aliases:
        return aliases[text]
    try:
        return enum_cls(text)
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} value {value!r}, using none")
        return enum_cls.NONE


def parse_filter_settings(raw: Any) -> FilterSettings:
    if not isinstance(raw, dict):
        return FilterSettings()

    chips_raw = raw.get("chips") or {}
    if not isinstance(chips_raw, dict):
        chips_raw = {}
    chips = FilterChips(**{
        name: _as_bool(chips_raw.get(name, False)) for name in CHIP_NAMES
    })

    return FilterSettings(
        users_filter=_parse_enum(raw.get("users_filter"), UsersFilter, _USERS_ALIASES),
        groups_filter=_parse_enum(raw.get("groups_filter"), GroupsFilter, _GROUPS_ALIASES),
        chips=chips,
    )


class FilterStore:
    """Loads and saves FilterSettings at a fixed path."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> FilterSettings:
        if not self.path.exists():
            return FilterSettings()
        try:
            with open(self.path) as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring unreadable filter file {self.path}: {e}")
            return FilterSettings()
        return parse_filter_settings(raw)

    def save(self, settings: FilterSettings) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                yaml.safe_dump(settings.to_dict(), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            logger.error(f"Failed to save filters to {self.path}: {e}")
