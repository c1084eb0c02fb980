"""
modals.py — Modal workflow states.

Each class is one workflow step and carries only what that step needs.
Pickers share the ListPicker payload; menus share the `selected` index and a
class-level `items` tuple.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Set, Tuple

from usrgrp.config.filters import FilterSettings
from usrgrp.privileged.models import PendingBase

# Shared by every picker
PAGE_STEP = 10
PICKER_ROWS = 10


class PickerSource(str, Enum):
    ALL_GROUPS = "all_groups"
    USER_GROUPS = "user_groups"
    ALL_USERS = "all_users"
    GROUP_MEMBERS = "group_members"
    SHELLS = "shells"


@dataclass
class ListPicker:
    """Cursor over a candidate list resolved from `source` on demand."""
    source: PickerSource
    selected: int = 0
    offset: int = 0
    marked: Set[str] = field(default_factory=set)

    def move(self, delta: int, count: int) -> None:
        if count <= 0:
            self.selected = 0
            self.offset = 0
            return
        self.selected = max(0, min(self.selected + delta, count - 1))
        self._scroll()

    def clamp(self, count: int) -> None:
        self.move(0, count)

    def _scroll(self) -> None:
        if self.selected < self.offset:
            self.offset = self.selected
        elif self.selected >= self.offset + PICKER_ROWS:
            self.offset = self.selected - PICKER_ROWS + 1

    def toggle_mark(self, name: str) -> None:
        if name in self.marked:
            self.marked.discard(name)
        else:
            self.marked.add(name)


class Modal:
    """Base for every modal state."""
    title: ClassVar[str] = ""


class MenuModal(Modal):
    items: ClassVar[Tuple[str, ...]] = ()


# ============================================================================
# User workflows
# ============================================================================

@dataclass
class UserActions(MenuModal):
    username: str
    selected: int = 0
    title: ClassVar[str] = "User actions"
    items: ClassVar[Tuple[str, ...]] = ("Modify", "Delete")


@dataclass
class UserModifyMenu(MenuModal):
    username: str
    selected: int = 0
    title: ClassVar[str] = "Modify user"
    items: ClassVar[Tuple[str, ...]] = ("Add to groups", "Remove from groups", "Details", "Password")


@dataclass
class AddToGroupsPicker(Modal):
    username: str
    picker: ListPicker = field(default_factory=lambda: ListPicker(PickerSource.ALL_GROUPS))
    title: ClassVar[str] = "Add to groups"


@dataclass
class RemoveFromGroupsPicker(Modal):
    username: str
    picker: ListPicker = field(default_factory=lambda: ListPicker(PickerSource.USER_GROUPS))
    title: ClassVar[str] = "Remove from groups"


@dataclass
class UserDetailsMenu(MenuModal):
    username: str
    selected: int = 0
    title: ClassVar[str] = "Details"
    items: ClassVar[Tuple[str, ...]] = ("Username", "Full name", "Shell")


@dataclass
class UsernameInput(Modal):
    username: str
    value: str = ""
    title: ClassVar[str] = "New username"


@dataclass
class FullnameInput(Modal):
    username: str
    value: str = ""
    title: ClassVar[str] = "New full name"


@dataclass
class ShellPicker(Modal):
    username: str
    picker: ListPicker = field(default_factory=lambda: ListPicker(PickerSource.SHELLS))
    title: ClassVar[str] = "Shell"


@dataclass
class PasswordMenu(MenuModal):
    username: str
    selected: int = 0
    title: ClassVar[str] = "Password"
    items: ClassVar[Tuple[str, ...]] = ("Set password", "Expire password")


@dataclass
class ChangePasswordForm(Modal):
    """Rows: 0 password, 1 confirm, 2 must-change toggle, 3 submit."""
    username: str
    selected: int = 0
    password: str = ""
    confirm: str = ""
    must_change: bool = False
    title: ClassVar[str] = "Set password"
    ROWS: ClassVar[int] = 4


@dataclass
class DeleteUserConfirm(Modal):
    username: str
    allowed: bool
    selected: int = 1
    delete_home: bool = False
    title: ClassVar[str] = "Delete user"


@dataclass
class CreateUserForm(Modal):
    """Rows: 0 name, 1 password, 2 confirm, 3 create home, 4 sudo group, 5 submit."""
    selected: int = 0
    name: str = ""
    password: str = ""
    confirm: str = ""
    create_home: bool = True
    add_to_sudo_group: bool = False
    title: ClassVar[str] = "New user"
    ROWS: ClassVar[int] = 6


# ============================================================================
# Group workflows
# ============================================================================

@dataclass
class GroupActions(MenuModal):
    gid: Optional[int]
    selected: int = 0
    title: ClassVar[str] = "Group actions"
    items: ClassVar[Tuple[str, ...]] = ("Create group", "Delete group", "Modify")


@dataclass
class GroupCreateInput(Modal):
    """`gid` is the group menu to return to on Backspace, if any."""
    gid: Optional[int] = None
    value: str = ""
    title: ClassVar[str] = "New group"


@dataclass
class GroupDeleteConfirm(Modal):
    gid: int
    selected: int = 1
    title: ClassVar[str] = "Delete group"


@dataclass
class GroupModifyMenu(MenuModal):
    gid: int
    selected: int = 0
    title: ClassVar[str] = "Modify group"
    items: ClassVar[Tuple[str, ...]] = ("Add members", "Remove members", "Rename")


@dataclass
class AddMembersPicker(Modal):
    gid: int
    picker: ListPicker = field(default_factory=lambda: ListPicker(PickerSource.ALL_USERS))
    title: ClassVar[str] = "Add members"


@dataclass
class RemoveMembersPicker(Modal):
    gid: int
    picker: ListPicker = field(default_factory=lambda: ListPicker(PickerSource.GROUP_MEMBERS))
    title: ClassVar[str] = "Remove members"


@dataclass
class GroupRenameInput(Modal):
    gid: int
    value: str = ""
    title: ClassVar[str] = "Rename group"


# ============================================================================
# Shared
# ============================================================================

@dataclass
class FilterMenu(Modal):
    """Edits a draft; the session's settings change only on Enter."""
    draft: FilterSettings
    selected: int = 0
    title: ClassVar[str] = "Filters"


@dataclass
class HelpModal(Modal):
    scroll: int = 0
    title: ClassVar[str] = "Help"


@dataclass
class CredentialPrompt(Modal):
    pending: PendingBase
    secret: str = ""
    error: Optional[str] = None
    title: ClassVar[str] = "Authentication"


@dataclass
class Info(Modal):
    message: str
    title: ClassVar[str] = "Info"

