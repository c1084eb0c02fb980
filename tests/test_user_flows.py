"""
test_user_flows.py — Tests for the user-side modal workflows

User rows in the default fixture: root, daemon, alice, bob, carol, svc.
"""

import pytest

from usrgrp.privileged.adapter import AUTH_REQUIRED
from usrgrp.session import modals as m
from usrgrp.session.flows.users import PASSWORD_MISMATCH
from usrgrp.session.state import InputMode

from conftest import FakeAdapter, press, type_text


def select_user(ctl, index):
    press(ctl, *["down"] * index)


def open_modify(ctl, index=2):
    """Open UserModifyMenu for the user at `index` (alice by default)."""
    select_user(ctl, index)
    press(ctl, "enter", "enter")
    assert isinstance(ctl.session.modal, m.UserModifyMenu)


# ============================================================================
# Delete
# ============================================================================

class TestDeleteUser:

    @pytest.mark.parametrize("index,name", [(0, "root"), (1, "daemon"), (5, "svc")])
    def test_outside_regular_range_refused(self, make_controller, index, name):
        ctl, _, adapter = make_controller()
        select_user(ctl, index)
        press(ctl, "delete")

        modal = ctl.session.modal
        assert isinstance(modal, m.Info)
        assert modal.message == f"Deletion not allowed. Only UID 1000-1999 allowed: {name}"
        assert adapter.invocations == 0

        press(ctl, "enter")
        assert ctl.session.modal is None
        assert adapter.invocations == 0

    def test_refused_through_actions_menu(self, make_controller):
        ctl, _, _ = make_controller()
        select_user(ctl, 1)
        press(ctl, "enter", "down", "enter")
        assert ctl.session.modal.message.startswith("Deletion not allowed")

    def test_confirm_defaults_to_no(self, make_controller):
        ctl, _, adapter = make_controller()
        select_user(ctl, 2)
        press(ctl, "delete")
        assert isinstance(ctl.session.modal, m.DeleteUserConfirm)

        press(ctl, "enter")
        assert ctl.session.modal is None
        assert adapter.invocations == 0

    def test_delete_with_home(self, make_controller):
        ctl, source, adapter = make_controller()
        select_user(ctl, 2)
        press(ctl, "delete", "left", " ", "enter")

        assert adapter.calls == [("delete_user", "alice", True)]
        assert ctl.session.modal == m.Info("Deleted user 'alice' and home")
        assert source.user_reads == 2
        assert source.group_reads == 2


# ============================================================================
# Credential prompt
# ============================================================================

class TestCredentialRetry:

    def _start_delete(self, make_controller):
        ctl, source, adapter = make_controller(adapter=FakeAdapter(password="pw"))
        select_user(ctl, 2)
        press(ctl, "delete", "left", "enter")
        return ctl, source, adapter

    def test_prompt_then_success(self, make_controller):
        ctl, _, adapter = self._start_delete(make_controller)
        prompt = ctl.session.modal
        assert isinstance(prompt, m.CredentialPrompt)
        assert prompt.error == AUTH_REQUIRED
        assert adapter.invocations == 1

        type_text(ctl, "bad")
        press(ctl, "enter")
        prompt = ctl.session.modal
        assert isinstance(prompt, m.CredentialPrompt)
        assert prompt.error == "sudo failed: Sorry, try again."
        assert prompt.secret == ""
        assert adapter.invocations == 2
        assert ctl.session.credential is None

        type_text(ctl, "pw")
        press(ctl, "enter")
        assert ctl.session.modal == m.Info("Deleted user 'alice'")
        assert adapter.invocations == 3
        assert ctl.session.current_credential() == "pw"

    def test_cached_credential_reused(self, make_controller):
        ctl, _, adapter = make_controller(adapter=FakeAdapter(password="pw"), credential="pw")
        select_user(ctl, 2)
        press(ctl, "delete", "left", "enter")
        assert ctl.session.modal == m.Info("Deleted user 'alice'")
        assert adapter.invocations == 1

    def test_stale_cached_credential_dropped(self, make_controller):
        ctl, _, _ = make_controller(adapter=FakeAdapter(password="pw"), credential="old")
        select_user(ctl, 2)
        press(ctl, "delete", "left", "enter")
        assert isinstance(ctl.session.modal, m.CredentialPrompt)
        assert ctl.session.credential is None

    def test_escape_abandons_action(self, make_controller):
        ctl, _, adapter = self._start_delete(make_controller)
        type_text(ctl, "pw")
        press(ctl, "escape")
        assert ctl.session.modal is None
        assert ctl.session.input_mode == InputMode.NORMAL
        assert adapter.invocations == 1
        assert adapter.calls == []

    def test_secret_accepts_navigation_letters(self, make_controller):
        ctl, _, _ = self._start_delete(make_controller)
        type_text(ctl, "jk q")
        assert ctl.session.modal.secret == "jk q"
        press(ctl, "backspace")
        assert ctl.session.modal.secret == "jk "

    def test_backspace_on_empty_secret_closes(self, make_controller):
        ctl, _, adapter = self._start_delete(make_controller)
        type_text(ctl, "p")
        press(ctl, "backspace")
        assert isinstance(ctl.session.modal, m.CredentialPrompt)

        press(ctl, "backspace")
        assert ctl.session.modal is None
        assert ctl.session.input_mode == InputMode.NORMAL
        assert adapter.invocations == 1

    def test_command_failure_keeps_accepted_secret(self, make_controller):
        adapter = FakeAdapter(password="pw", fail_with="userdel failed: user busy")
        ctl, _, _ = make_controller(adapter=adapter)
        select_user(ctl, 2)
        press(ctl, "delete", "left", "enter")
        type_text(ctl, "pw")
        press(ctl, "enter")

        prompt = ctl.session.modal
        assert isinstance(prompt, m.CredentialPrompt)
        assert prompt.error == "userdel failed: user busy"
        assert ctl.session.current_credential() == "pw"


# ============================================================================
# Membership
# ============================================================================

class TestMembership:

    def test_add_single_group(self, make_controller):
        ctl, _, adapter = make_controller()
        open_modify(ctl)
        press(ctl, "enter", "down", "enter")
        assert adapter.calls == [("add_user_to_group", "alice", "wheel")]
        assert ctl.session.modal.message == "Added 'alice' to 'wheel'"

    def test_add_marked_groups(self, make_controller):
        ctl, source, adapter = make_controller()
        open_modify(ctl)
        press(ctl, "enter", "down", "down", "down", " ", "down", "down", " ", "enter")
        assert adapter.calls == [
            ("add_user_to_group", "alice", "bob"),
            ("add_user_to_group", "alice", "dev"),
        ]
        assert ctl.session.modal.message == "Added 'alice' to selected groups"
        # Membership changes re-list groups only
        assert (source.user_reads, source.group_reads) == (1, 2)

    def test_remove_candidates_are_users_groups(self, make_controller):
        ctl, _, _ = make_controller()
        open_modify(ctl)
        press(ctl, "down", "enter")
        modal = ctl.session.modal
        assert isinstance(modal, m.RemoveFromGroupsPicker)
        assert ctl.candidates(modal) == ["wheel", "alice", "dev"]

    def test_primary_group_refused(self, make_controller):
        ctl, _, adapter = make_controller()
        open_modify(ctl)
        press(ctl, "down", "enter", "down", "enter")
        assert ctl.session.modal == m.Info("Cannot remove user from primary group.")
        assert adapter.invocations == 0

    def test_remove_marked(self, make_controller):
        ctl, _, adapter = make_controller()
        open_modify(ctl)
        press(ctl, "down", "enter", " ", "down", "down", " ", "enter")
        assert adapter.calls == [
            ("remove_user_from_group", "alice", "wheel"),
            ("remove_user_from_group", "alice", "dev"),
        ]
        assert ctl.session.modal.message == "Removed 'alice' from selected groups"

    def test_marked_primary_group_skipped(self, make_controller):
        ctl, _, adapter = make_controller()
        open_modify(ctl)
        press(ctl, "down", "enter", " ", "down", " ", "down", " ", "enter")
        assert adapter.calls == [
            ("remove_user_from_group", "alice", "wheel"),
            ("remove_user_from_group", "alice", "dev"),
        ]
        assert ctl.session.modal.message == "Removed 'alice' from selected groups"

    def test_marked_primary_group_alone(self, make_controller):
        ctl, _, adapter = make_controller()
        open_modify(ctl)
        press(ctl, "down", "enter", "down", " ", "enter")
        assert ctl.session.modal == m.Info("No valid groups selected (cannot remove primary).")
        assert adapter.invocations == 0

    def test_marked_primary_and_one_other(self, make_controller):
        ctl, _, adapter = make_controller()
        open_modify(ctl)
        press(ctl, "down", "enter", "down", " ", "down", " ", "enter")
        assert adapter.calls == [("remove_user_from_group", "alice", "dev")]
        assert ctl.session.modal == m.Info("Removed 'alice' from 'dev'")

    def test_backspace_returns_to_modify_menu(self, make_controller):
        ctl, _, _ = make_controller()
        open_modify(ctl)
        press(ctl, "down", "enter", "backspace")
        modal = ctl.session.modal
        assert isinstance(modal, m.UserModifyMenu)
        assert modal.selected == 1


# ============================================================================
# Details
# ============================================================================

class TestDetails:

    def _open_details(self, make_controller):
        ctl, source, adapter = make_controller()
        open_modify(ctl)
        press(ctl, "down", "down", "enter")
        assert isinstance(ctl.session.modal, m.UserDetailsMenu)
        return ctl, source, adapter

    def test_rename(self, make_controller):
        ctl, _, adapter = self._open_details(make_controller)
        press(ctl, "enter")
        type_text(ctl, "alicia")
        press(ctl, "enter")
        assert adapter.calls == [("change_username", "alice", "alicia")]
        assert ctl.session.modal == m.Info("Changed successfully")

    def test_empty_username_refused(self, make_controller):
        ctl, _, adapter = self._open_details(make_controller)
        press(ctl, "enter")
        type_text(ctl, "  ")
        press(ctl, "enter")
        assert ctl.session.modal == m.Info("Username cannot be empty")
        assert adapter.invocations == 0

    def test_backspace_on_empty_goes_back(self, make_controller):
        ctl, _, _ = self._open_details(make_controller)
        press(ctl, "enter")
        type_text(ctl, "x")
        press(ctl, "backspace", "backspace")
        modal = ctl.session.modal
        assert isinstance(modal, m.UserDetailsMenu)
        assert modal.selected == 0

    def test_full_name_with_spaces(self, make_controller):
        ctl, source, adapter = self._open_details(make_controller)
        press(ctl, "down", "enter")
        type_text(ctl, "Alice L. Jones")
        press(ctl, "enter")
        assert adapter.calls == [("change_fullname", "alice", "Alice L. Jones")]
        assert (source.user_reads, source.group_reads) == (2, 1)

    def test_shell_picker_starts_on_current_shell(self, make_controller):
        ctl, _, adapter = self._open_details(make_controller)
        press(ctl, "down", "down", "enter")
        modal = ctl.session.modal
        assert isinstance(modal, m.ShellPicker)
        assert modal.picker.selected == 0  # /bin/bash

        press(ctl, "down", "enter")
        assert adapter.calls == [("change_shell", "alice", "/bin/zsh")]
        assert ctl.session.modal.message == "Changed shell to '/bin/zsh'"


# ============================================================================
# Password
# ============================================================================

class TestPassword:

    def _open_password_menu(self, make_controller):
        ctl, source, adapter = make_controller()
        open_modify(ctl)
        press(ctl, "down", "down", "down", "enter")
        assert isinstance(ctl.session.modal, m.PasswordMenu)
        return ctl, adapter

    def test_set_password(self, make_controller):
        ctl, adapter = self._open_password_menu(make_controller)
        press(ctl, "enter")
        type_text(ctl, "s3cret")
        press(ctl, "enter")
        type_text(ctl, "s3cret")
        press(ctl, "down", " ", "down", "enter")

        assert adapter.calls == [
            ("set_password", "alice", "s3cret"),
            ("expire_password", "alice"),
        ]
        assert ctl.session.modal.message == "Password set, must change at next login"

    def test_mismatch(self, make_controller):
        ctl, adapter = self._open_password_menu(make_controller)
        press(ctl, "enter")
        type_text(ctl, "one")
        press(ctl, "down")
        type_text(ctl, "two")
        press(ctl, "down", "down", "enter")
        assert ctl.session.modal == m.Info(PASSWORD_MISMATCH)
        assert adapter.invocations == 0

    def test_empty_password_refused(self, make_controller):
        ctl, adapter = self._open_password_menu(make_controller)
        press(ctl, "enter", "down", "down", "down", "enter")
        assert ctl.session.modal == m.Info(PASSWORD_MISMATCH)
        assert adapter.invocations == 0

    def test_expire(self, make_controller):
        ctl, adapter = self._open_password_menu(make_controller)
        press(ctl, "down", "enter")
        assert adapter.calls == [("expire_password", "alice")]
        assert ctl.session.modal == m.Info("Password reset (must change at next login)")


# ============================================================================
# Create
# ============================================================================

class TestCreateUser:

    def test_full_form(self, make_controller):
        ctl, _, adapter = make_controller()
        press(ctl, "n")
        assert isinstance(ctl.session.modal, m.CreateUserForm)

        type_text(ctl, "eve")
        press(ctl, "enter")
        type_text(ctl, "pw")
        press(ctl, "enter")
        type_text(ctl, "pw")
        press(ctl, "down", "down", " ", "down", "enter")

        assert adapter.calls == [
            ("create_user", "eve", True),
            ("set_password", "eve", "pw"),
            ("add_user_to_group", "eve", "wheel"),
        ]
        assert ctl.session.modal.message == "Created user 'eve' with home with password and wheel"

    def test_no_home_no_password(self, make_controller):
        ctl, _, adapter = make_controller()
        press(ctl, "n")
        type_text(ctl, "eve")
        press(ctl, "down", "down", "down", " ", "down", "down", "enter")
        assert adapter.calls == [("create_user", "eve", False)]
        assert ctl.session.modal.message == "Created user 'eve'"

    def test_name_required(self, make_controller):
        ctl, _, adapter = make_controller()
        press(ctl, "n", "down", "down", "down", "down", "down", "enter")
        assert ctl.session.modal == m.Info("Username cannot be empty")
        assert adapter.invocations == 0

    def test_letters_are_text_not_navigation(self, make_controller):
        ctl, _, _ = make_controller()
        press(ctl, "n")
        type_text(ctl, "jake")
        modal = ctl.session.modal
        assert modal.name == "jake"
        assert modal.selected == 0


# ============================================================================
# Cancel
# ============================================================================

class TestCancel:
    """Escape from any depth discards the whole workflow."""

    @pytest.mark.parametrize("keys", [
        ["enter"],
        ["enter", "enter"],
        ["enter", "enter", "enter"],
        ["enter", "enter", "down", "down", "enter", "enter"],
        ["enter", "enter", "down", "down", "down", "enter", "enter"],
        ["delete"],
        ["n"],
        ["f"],
        ["?"],
    ])
    def test_escape_closes(self, make_controller, keys):
        ctl, _, adapter = make_controller()
        select_user(ctl, 2)
        press(ctl, *keys)
        assert ctl.session.modal is not None

        press(ctl, "escape")
        assert ctl.session.modal is None
        assert ctl.session.input_mode == InputMode.NORMAL
        assert adapter.invocations == 0
        assert ctl.session.selected_user == 2
