"""
state.py — The session: everything the console reads to draw a frame.

The session holds data only. Transitions live in the controller and the flow
modules, which receive the session through the controller.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from usrgrp.config.filters import FilterSettings
from usrgrp.records.models import Group, User, groups_of_user
from usrgrp.records.store import RecordStore
from usrgrp.session.modals import Modal


class Tab(Enum):
    USERS = "users"
    GROUPS = "groups"


class InputMode(Enum):
    NORMAL = "normal"
    SEARCH_USERS = "search_users"
    SEARCH_GROUPS = "search_groups"
    MODAL = "modal"


class UsersFocus(Enum):
    LIST = "list"
    MEMBER_OF = "member_of"


@dataclass
class CachedCredential:
    """In-memory sudo secret. `timeout` 0 keeps it until exit."""
    secret: str
    stored_at: float
    timeout: float = 0

    def expired(self, now: float) -> bool:
        return self.timeout > 0 and now - self.stored_at >= self.timeout


@dataclass
class Session:
    store: RecordStore = field(default_factory=RecordStore)
    filters: FilterSettings = field(default_factory=FilterSettings)

    active_tab: Tab = Tab.USERS
    selected_user: int = 0
    selected_group: int = 0
    users_focus: UsersFocus = UsersFocus.LIST
    selected_member_of: int = 0
    rows_per_page: int = 10

    input_mode: InputMode = InputMode.NORMAL
    search_query: str = ""
    modal: Optional[Modal] = None

    credential: Optional[CachedCredential] = None
    credential_timeout: float = 0
    clock: Callable[[], float] = time.monotonic

    show_keybinds: bool = False
    running: bool = True

    # ------------------------------------------------------------------
    # Modal lifecycle
    # ------------------------------------------------------------------

    def open_modal(self, modal: Modal) -> None:
        self.modal = modal
        self.input_mode = InputMode.MODAL

    def close_modal(self) -> None:
        self.modal = None
        self.input_mode = InputMode.NORMAL

    # ------------------------------------------------------------------
    # Credential
    # ------------------------------------------------------------------

    def remember_credential(self, secret: str) -> None:
        self.credential = CachedCredential(secret, self.clock(), self.credential_timeout)

    def current_credential(self) -> Optional[str]:
        if self.credential is None:
            return None
        if self.credential.expired(self.clock()):
            self.credential = None
            return None
        return self.credential.secret

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def selected_user_record(self) -> Optional[User]:
        users = self.store.users
        if 0 <= self.selected_user < len(users):
            return users[self.selected_user]
        return None

    def selected_group_record(self) -> Optional[Group]:
        groups = self.store.groups
        if 0 <= self.selected_group < len(groups):
            return groups[self.selected_group]
        return None

    def member_of(self) -> List[Group]:
        """Groups of the selected user, drawn from the full group list."""
        user = self.selected_user_record()
        if user is None:
            return []
        return groups_of_user(user, self.store.groups_all)
