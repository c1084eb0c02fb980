"""
keymap.py — Maps key presses to semantic actions.

Key names follow prompt_toolkit ("enter", "escape", "up", "pageup", "s-tab",
"c-q") or are single printable characters.

keybinds.yaml example:
    Quit: q
    MoveDown: [Down, j]
    OpenHelp: "?"
    StartSearch: Ctrl+f

Normal-mode bindings come from keybinds.yaml. Modal and search editing use a
fixed table so that remapping never breaks text entry or cancel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import yaml

logger = logging.getLogger("usrgrp.keymap")


class Action(str, Enum):
    QUIT = "Quit"
    IGNORE = "Ignore"
    OPEN_FILTER_MENU = "OpenFilterMenu"
    START_SEARCH = "StartSearch"
    NEW_USER = "NewUser"
    OPEN_HELP = "OpenHelp"
    DELETE_SELECTION = "DeleteSelection"
    SWITCH_TAB = "SwitchTab"
    TOGGLE_USERS_FOCUS = "ToggleUsersFocus"
    ENTER_ACTION = "EnterAction"
    MOVE_UP = "MoveUp"
    MOVE_DOWN = "MoveDown"
    MOVE_LEFT_PAGE = "MoveLeftPage"
    MOVE_RIGHT_PAGE = "MoveRightPage"
    PAGE_UP = "PageUp"
    PAGE_DOWN = "PageDown"
    TOGGLE_KEYBINDS_PANE = "ToggleKeybindsPane"
    # Modal / search editing
    CONFIRM = "Confirm"
    CANCEL = "Cancel"
    BACK = "Back"
    TOGGLE = "Toggle"


DEFAULT_BINDINGS: Dict[Action, List[str]] = {
    Action.QUIT: ["q"],
    Action.IGNORE: ["escape"],
    Action.OPEN_FILTER_MENU: ["f"],
    Action.START_SEARCH: ["/"],
    Action.NEW_USER: ["n"],
    Action.OPEN_HELP: ["?"],
    Action.DELETE_SELECTION: ["delete"],
    Action.SWITCH_TAB: ["tab"],
    Action.TOGGLE_USERS_FOCUS: ["s-tab"],
    Action.ENTER_ACTION: ["enter"],
    Action.MOVE_UP: ["up", "k"],
    Action.MOVE_DOWN: ["down", "j"],
    Action.MOVE_LEFT_PAGE: ["left", "h"],
    Action.MOVE_RIGHT_PAGE: ["right", "l"],
    Action.PAGE_UP: ["pageup"],
    Action.PAGE_DOWN: ["pagedown"],
    Action.TOGGLE_KEYBINDS_PANE: ["K"],
}

MODAL_BINDINGS: Dict[str, Action] = {
    "escape": Action.CANCEL,
    "enter": Action.CONFIRM,
    "backspace": Action.BACK,
    "up": Action.MOVE_UP,
    "k": Action.MOVE_UP,
    "down": Action.MOVE_DOWN,
    "j": Action.MOVE_DOWN,
    "left": Action.MOVE_LEFT_PAGE,
    "h": Action.MOVE_LEFT_PAGE,
    "right": Action.MOVE_RIGHT_PAGE,
    "l": Action.MOVE_RIGHT_PAGE,
    "tab": Action.MOVE_DOWN,
    "s-tab": Action.MOVE_UP,
    "pageup": Action.PAGE_UP,
    "pagedown": Action.PAGE_DOWN,
    " ": Action.TOGGLE,
}

# prompt_toolkit reports some keys under their control-code names
_PTK_ALIASES = {
    "c-m": "enter",
    "c-j": "enter",
    "c-i": "tab",
    "c-h": "backspace",
    "backtab": "s-tab",
}

_NAMED_KEYS = {
    "enter": "enter",
    "return": "enter",
    "esc": "escape",
    "escape": "escape",
    "tab": "tab",
    "backtab": "s-tab",
    "backspace": "backspace",
    "delete": "delete",
    "del": "delete",
    "insert": "insert",
    "home": "home",
    "end": "end",
    "up": "up",
    "down": "down",
    "left": "left",
    "right": "right",
    "pageup": "pageup",
    "pagedown": "pagedown",
    "space": " ",
}

_DISPLAY_NAMES = {
    "enter": "Enter",
    "escape": "Esc",
    "tab": "Tab",
    "s-tab": "BackTab",
    "backspace": "Backspace",
    "delete": "Delete",
    "up": "Up",
    "down": "Down",
    "left": "Left",
    "right": "Right",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    " ": "Space",
}


def normalize_key(key: str) -> str:
    """Normalize a prompt_toolkit key name."""
    return _PTK_ALIASES.get(key, key)


def parse_key_spec(spec: str) -> str:
    """
    Parse a human key spec into a normalized key name.

    "Ctrl+q" -> "c-q", "PageUp" -> "pageup", "x" -> "x".
    Raises ValueError on anything unrecognized.
    """
    text = str(spec).strip()
    if len(text) == 1:
        return text
    if not text:
        raise ValueError("empty key spec")

    lowered = text.lower()
    for prefix in ("ctrl+", "ctrl-", "c-"):
        if lowered.startswith(prefix):
            rest = text[len(prefix):]
            if len(rest) == 1:
                return f"c-{rest.lower()}"
            raise ValueError(f"unsupported control key: {spec!r}")

    if lowered in _NAMED_KEYS:
        return _NAMED_KEYS[lowered]
    if lowered.startswith("f") and lowered[1:].isdigit():
        return lowered
    raise ValueError(f"unknown key: {spec!r}")


def format_key(key: str) -> str:
    if key in _DISPLAY_NAMES:
        return _DISPLAY_NAMES[key]
    if key.startswith("c-"):
        return f"Ctrl+{key[2:]}"
    return key


@dataclass(frozen=True)
class KeyEvent:
    """A normalized key press and the action it resolved to, if any."""
    key: str
    action: Optional[Action] = None

    @property
    def char(self) -> Optional[str]:
        if len(self.key) == 1 and self.key.isprintable():
            return self.key
        return None


# ============================================================================
# Keymap
# ============================================================================

class Keymap:
    """Normal-mode key → action table."""

    def __init__(self, bindings: Optional[Dict[Action, List[str]]] = None):
        self.bindings: Dict[Action, List[str]] = {
            action: list(keys)
            for action, keys in (bindings or DEFAULT_BINDINGS).items()
        }
        self._lookup: Dict[str, Action] = {}
        for action, keys in self.bindings.items():
            for key in keys:
                self._lookup[key] = action

    def resolve(self, key: str) -> Optional[Action]:
        return self._lookup.get(normalize_key(key))

    @staticmethod
    def resolve_modal(key: str) -> Optional[Action]:
        return MODAL_BINDINGS.get(normalize_key(key))

    def keys_for(self, action: Action) -> List[str]:
        return self.bindings.get(action, [])

    def describe(self, action: Action) -> str:
        return "/".join(format_key(k) for k in self.keys_for(action))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, raw: dict) -> Keymap:
        bindings = {a: list(k) for a, k in DEFAULT_BINDINGS.items()}
        for name, specs in (raw or {}).items():
            try:
                action = Action(name)
            except ValueError:
                logger.warning(f"Unknown action in keybinds: {name!r}")
                continue
            if isinstance(specs, (str, int)):
                specs = [specs]
            keys = []
            for spec in specs or []:
                try:
                    keys.append(parse_key_spec(str(spec)))
                except ValueError as e:
                    logger.warning(f"Skipping binding for {name}: {e}")
            if keys:
                bindings[action] = keys
        return cls(bindings)

    def to_dict(self) -> Dict[str, Union[str, List[str]]]:
        out: Dict[str, Union[str, List[str]]] = {}
        for action, keys in self.bindings.items():
            names = [format_key(k) for k in keys]
            out[action.value] = names[0] if len(names) == 1 else names
        return out

    @classmethod
    def load_or_init(cls, path: Path) -> Keymap:
        """Load keybinds.yaml, writing the defaults first when it is missing."""
        path = Path(path)
        if not path.exists():
            keymap = cls()
            keymap.write(path)
            return keymap
        try:
            with open(path) as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring unreadable keybinds file {path}: {e}")
            return cls()
        if not isinstance(raw, dict):
            return cls()
        return cls.from_dict(raw)

    def write(self, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            logger.error(f"Failed to write keybinds to {path}: {e}")


def iter_help_lines(keymap: Keymap) -> Iterable[str]:
    for action in keymap.bindings:
        if action == Action.IGNORE:
            continue
        yield f"{keymap.describe(action):<16} {action.value}"
