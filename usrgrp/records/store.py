"""
store.py — Full and visible record lists owned by the session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from usrgrp.records.models import Group, User
from usrgrp.records.source import RecordSourceError

logger = logging.getLogger("usrgrp.records")


class RecordSource(Protocol):
    def list_users(self) -> List[User]: ...
    def list_groups(self) -> List[Group]: ...
    def list_shells(self) -> List[str]: ...
    def group_mtime(self) -> Optional[int]: ...


@dataclass
class RecordStore:
    users_all: List[User] = field(default_factory=list)
    groups_all: List[Group] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    groups: List[Group] = field(default_factory=list)

    def reload_users(self, source: RecordSource) -> None:
        try:
            self.users_all = list(source.list_users())
        except RecordSourceError as e:
            logger.warning(f"User listing failed, showing empty list: {e}")
            self.users_all = []
        self.users = list(self.users_all)

    def reload_groups(self, source: RecordSource) -> None:
        try:
            self.groups_all = list(source.list_groups())
        except RecordSourceError as e:
            logger.warning(f"Group listing failed, showing empty list: {e}")
            self.groups_all = []
        self.groups = list(self.groups_all)

    def reload(self, source: RecordSource) -> None:
        self.reload_users(source)
        self.reload_groups(source)

    def find_user(self, name: str):
        return next((u for u in self.users_all if u.name == name), None)

    def find_group(self, gid: int):
        return next((g for g in self.groups_all if g.gid == gid), None)
