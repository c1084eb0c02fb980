"""
test_config.py — Tests for settings, persisted filters and the keymap
"""

import pytest
import yaml

from usrgrp.config.filters import (
    FilterChips,
    FilterSettings,
    FilterStore,
    GroupsFilter,
    UsersFilter,
    parse_filter_settings,
)
from usrgrp.config.keymap import (
    DEFAULT_BINDINGS,
    Action,
    KeyEvent,
    Keymap,
    format_key,
    iter_help_lines,
    parse_key_spec,
)
from usrgrp.config.settings import SUDO_GROUP_ENV, ConfigLoader, config_dir


# ============================================================================
# Filters
# ============================================================================

class TestFilterStore:
    """filters.yaml persistence."""

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = FilterStore(tmp_path / "filters.yaml").load()
        assert settings == FilterSettings()

    def test_save_then_load(self, tmp_path):
        store = FilterStore(tmp_path / "sub" / "filters.yaml")
        settings = FilterSettings(
            users_filter=UsersFilter.HUMAN,
            groups_filter=GroupsFilter.SYSTEM,
            chips=FilterChips(locked=True, expired=True),
        )
        store.save(settings)
        assert store.load() == settings

    def test_legacy_names_accepted(self):
        settings = parse_filter_settings({
            "users_filter": "OnlyUserIds",
            "groups_filter": "OnlySystemGids",
            "chips": {"no_home": "yes", "inactive": "0"},
        })
        assert settings.users_filter == UsersFilter.HUMAN
        assert settings.groups_filter == GroupsFilter.SYSTEM
        assert settings.chips.no_home
        assert not settings.chips.inactive

    def test_unknown_values_fall_back(self):
        settings = parse_filter_settings({"users_filter": "bogus", "chips": "nope"})
        assert settings == FilterSettings()

    def test_corrupt_file_gives_defaults(self, tmp_path):
        path = tmp_path / "filters.yaml"
        path.write_text("users_filter: [unclosed\n")
        assert FilterStore(path).load() == FilterSettings()

    def test_copy_is_independent(self):
        original = FilterSettings()
        draft = original.copy()
        draft.chips.toggle("locked")
        assert not original.chips.locked
        assert draft.chips.locked


# ============================================================================
# Settings
# ============================================================================

class TestConfigLoader:

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv(SUDO_GROUP_ENV, raising=False)
        config = ConfigLoader.load(tmp_path)
        assert config.regular_uid_min == 1000
        assert config.regular_uid_max == 1999
        assert config.sudo_group == "wheel"
        assert config.credential_timeout == 0
        assert config.log_file == tmp_path / "usrgrp.log"
        assert config.filters_path == tmp_path / "filters.yaml"

    def test_values_from_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv(SUDO_GROUP_ENV, raising=False)
        (tmp_path / "settings.yaml").write_text(yaml.safe_dump({
            "paths": {"passwd": "/tmp/passwd"},
            "regular_uid_min": 2000,
            "regular_uid_max": 2999,
            "sudo_group": "sudo",
            "credential_timeout": 300,
            "log_file": None,
            "log_level": "debug",
        }))
        config = ConfigLoader.load(tmp_path)
        assert str(config.paths.passwd) == "/tmp/passwd"
        assert str(config.paths.group) == "/etc/group"
        assert (config.regular_uid_min, config.regular_uid_max) == (2000, 2999)
        assert config.sudo_group == "sudo"
        assert config.credential_timeout == 300
        assert config.log_file is None
        assert config.log_level == "DEBUG"

    def test_env_overrides_sudo_group(self, tmp_path, monkeypatch):
        monkeypatch.setenv(SUDO_GROUP_ENV, "admin")
        assert ConfigLoader.load(tmp_path).sudo_group == "admin"

    def test_inverted_range_rejected(self, tmp_path):
        (tmp_path / "settings.yaml").write_text("regular_uid_min: 5000\nregular_uid_max: 10\n")
        with pytest.raises(ValueError):
            ConfigLoader.load(tmp_path)

    def test_config_dir_prefers_xdg(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert config_dir() == tmp_path / "UsrGrpManager"


# ============================================================================
# Keymap
# ============================================================================

class TestKeySpecs:

    @pytest.mark.parametrize("spec,expected", [
        ("q", "q"),
        ("Ctrl+f", "c-f"),
        ("ctrl-Q", "c-q"),
        ("PageUp", "pageup"),
        ("Esc", "escape"),
        ("BackTab", "s-tab"),
        ("Space", " "),
        ("F5", "f5"),
    ])
    def test_parse(self, spec, expected):
        assert parse_key_spec(spec) == expected

    @pytest.mark.parametrize("spec", ["", "Ctrl+", "Hyper+x", "nonsense"])
    def test_parse_rejects(self, spec):
        with pytest.raises(ValueError):
            parse_key_spec(spec)

    def test_format_parses_back(self):
        for keys in DEFAULT_BINDINGS.values():
            for key in keys:
                assert parse_key_spec(format_key(key)) == key

    def test_key_event_char(self):
        assert KeyEvent("x").char == "x"
        assert KeyEvent(" ").char == " "
        assert KeyEvent("enter").char is None


class TestKeymap:

    def test_default_resolution(self):
        keymap = Keymap()
        assert keymap.resolve("q") == Action.QUIT
        assert keymap.resolve("c-i") == Action.SWITCH_TAB
        assert keymap.resolve("c-m") == Action.ENTER_ACTION
        assert keymap.resolve("z") is None

    def test_modal_table_is_fixed(self):
        """Remapping normal keys leaves modal editing alone."""
        keymap = Keymap.from_dict({"Quit": "escape", "Ignore": "z"})
        assert keymap.resolve("escape") == Action.QUIT
        assert keymap.resolve_modal("escape") == Action.CANCEL
        assert keymap.resolve_modal(" ") == Action.TOGGLE

    def test_from_dict_overrides_and_skips_unknown(self):
        keymap = Keymap.from_dict({
            "Quit": ["Ctrl+q", "x"],
            "LaunchRockets": "r",
            "MoveDown": ["Hyper+x"],
        })
        assert keymap.resolve("c-q") == Action.QUIT
        assert keymap.resolve("x") == Action.QUIT
        assert keymap.resolve("q") is None
        assert keymap.resolve("r") is None
        # Nothing valid given, defaults kept
        assert keymap.keys_for(Action.MOVE_DOWN) == ["down", "j"]

    def test_load_or_init_writes_defaults(self, tmp_path):
        path = tmp_path / "keybinds.yaml"
        keymap = Keymap.load_or_init(path)
        assert path.exists()
        assert keymap.bindings == Keymap().bindings

        raw = yaml.safe_load(path.read_text())
        assert raw["Quit"] == "q"
        assert raw["MoveDown"] == ["Down", "j"]
        assert Keymap.load_or_init(path).bindings == keymap.bindings

    def test_describe_and_help(self):
        keymap = Keymap()
        assert keymap.describe(Action.MOVE_UP) == "Up/k"
        lines = list(iter_help_lines(keymap))
        assert any("Quit" in line for line in lines)
        assert not any("Ignore" in line for line in lines)
