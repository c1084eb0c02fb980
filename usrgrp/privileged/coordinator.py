"""
coordinator.py — Executes pending actions against the system adapter.

execute() performs exactly one run of the action and reports an Outcome.
It never retries; the session decides what happens next.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from usrgrp.privileged.adapter import AuthenticationRequired, PrivilegedError, SystemAdapter
from usrgrp.privileged.models import (
    AddMembersToGroup,
    AddUserToGroup,
    AddUserToGroups,
    ChangeFullname,
    ChangeShell,
    ChangeUsername,
    CreateGroup,
    CreateUser,
    DeleteGroup,
    DeleteUser,
    ExpirePassword,
    PendingBase,
    RemoveMembersFromGroup,
    RemoveUserFromGroup,
    RemoveUserFromGroups,
    RenameGroup,
    SetPassword,
)

logger = logging.getLogger("usrgrp.privileged")


@dataclass(frozen=True)
class Success:
    message: str


@dataclass(frozen=True)
class Failure:
    reason: str
    auth_required: bool = False
    credential_accepted: bool = False


Outcome = Union[Success, Failure]


class Coordinator:
    """Runs PendingAction values, one adapter session per call."""

    def __init__(self, adapter: SystemAdapter):
        self.adapter = adapter

    def execute(self, action: PendingBase, credential: Optional[str]) -> Outcome:
        handler = getattr(self, f"_do_{action.kind}", None)
        if handler is None:
            raise TypeError(f"No handler for pending action {action.kind!r}")

        adapter = self.adapter.with_credential(credential)
        logger.info(f"Executing {action.describe()}")
        try:
            message = handler(adapter, action)
        except PrivilegedError as e:
            logger.warning(f"{action.kind} failed: {e.reason}")
            return Failure(
                e.reason,
                auth_required=isinstance(e, AuthenticationRequired),
                credential_accepted=e.credential_accepted,
            )

        logger.info(f"{action.kind} succeeded: {message}")
        return Success(message)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def _do_add_user_to_group(self, adapter: SystemAdapter, a: AddUserToGroup) -> str:
        adapter.add_user_to_group(a.username, a.groupname)
        return f"Added '{a.username}' to '{a.groupname}'"

    def _do_add_user_to_groups(self, adapter: SystemAdapter, a: AddUserToGroups) -> str:
        for group in a.groupnames:
            adapter.add_user_to_group(a.username, group)
        return f"Added '{a.username}' to selected groups"

    def _do_remove_user_from_group(self, adapter: SystemAdapter, a: RemoveUserFromGroup) -> str:
        adapter.remove_user_from_group(a.username, a.groupname)
        return f"Removed '{a.username}' from '{a.groupname}'"

    def _do_remove_user_from_groups(self, adapter: SystemAdapter, a: RemoveUserFromGroups) -> str:
        for group in a.groupnames:
            adapter.remove_user_from_group(a.username, group)
        return f"Removed '{a.username}' from selected groups"

    def _do_add_members_to_group(self, adapter: SystemAdapter, a: AddMembersToGroup) -> str:
        for user in a.usernames:
            adapter.add_user_to_group(user, a.groupname)
        return f"Added selected users to '{a.groupname}'"

    def _do_remove_members_from_group(self, adapter: SystemAdapter, a: RemoveMembersFromGroup) -> str:
        for user in a.usernames:
            adapter.remove_user_from_group(user, a.groupname)
        return f"Removed selected users from '{a.groupname}'"

    # ------------------------------------------------------------------
    # User details
    # ------------------------------------------------------------------

    def _do_change_shell(self, adapter: SystemAdapter, a: ChangeShell) -> str:
        adapter.change_shell(a.username, a.shell)
        return f"Changed shell to '{a.shell}'"

    def _do_change_fullname(self, adapter: SystemAdapter, a: ChangeFullname) -> str:
        adapter.change_fullname(a.username, a.fullname)
        return "Changed successfully"

    def _do_change_username(self, adapter: SystemAdapter, a: ChangeUsername) -> str:
        adapter.change_username(a.old_username, a.new_username)
        return "Changed successfully"

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def _do_create_group(self, adapter: SystemAdapter, a: CreateGroup) -> str:
        adapter.create_group(a.groupname)
        return f"Created group '{a.groupname}'"

    def _do_delete_group(self, adapter: SystemAdapter, a: DeleteGroup) -> str:
        adapter.delete_group(a.groupname)
        return f"Deleted group '{a.groupname}'"

    def _do_rename_group(self, adapter: SystemAdapter, a: RenameGroup) -> str:
        adapter.rename_group(a.old_name, a.new_name)
        return f"Renamed group to '{a.new_name}'"

    # ------------------------------------------------------------------
    # Accounts and passwords
    # ------------------------------------------------------------------

    def _do_create_user(self, adapter: SystemAdapter, a: CreateUser) -> str:
        adapter.create_user(a.username, a.create_home)
        if a.password:
            adapter.set_password(a.username, a.password)
        if a.add_to_sudo_group:
            adapter.add_user_to_group(a.username, adapter.sudo_group)

        message = f"Created user '{a.username}'"
        if a.create_home:
            message += " with home"
        if a.password:
            message += " with password"
        if a.add_to_sudo_group:
            message += f" and {adapter.sudo_group}"
        return message

    def _do_delete_user(self, adapter: SystemAdapter, a: DeleteUser) -> str:
        adapter.delete_user(a.username, a.delete_home)
        return f"Deleted user '{a.username}'" + (" and home" if a.delete_home else "")

    def _do_set_password(self, adapter: SystemAdapter, a: SetPassword) -> str:
        adapter.set_password(a.username, a.password)
        if not a.must_change:
            return "Password set"
        # chpasswd already succeeded, so an expiry failure is only reported
        try:
            adapter.expire_password(a.username)
        except PrivilegedError as e:
            logger.warning(f"Expiry after password change failed for '{a.username}': {e.reason}")
            return f"Password set (expiry failed: {e.reason})"
        return "Password set, must change at next login"

    def _do_expire_password(self, adapter: SystemAdapter, a: ExpirePassword) -> str:
        adapter.expire_password(a.username)
        return "Password reset (must change at next login)"
