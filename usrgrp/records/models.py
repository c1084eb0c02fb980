"""
models.py — User and group records as read from the system databases.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class PasswordStatus:
    """
    Shadow-derived password state. All False when shadow is unreadable.

    `last_change` and `expire` are days since the epoch, None when unset.
    """
    locked: bool = False
    no_password: bool = False
    expired: bool = False
    last_change: Optional[int] = None
    expire: Optional[int] = None


@dataclass(frozen=True)
class User:
    name: str
    uid: int
    primary_gid: int
    full_name: Optional[str] = None
    home_dir: str = ""
    shell: str = ""
    home_exists: bool = True
    password: PasswordStatus = field(default_factory=PasswordStatus)

    @property
    def has_inactive_shell(self) -> bool:
        return self.shell.endswith("nologin") or self.shell.endswith("/false")


@dataclass(frozen=True)
class Group:
    name: str
    gid: int
    members: List[str] = field(default_factory=list)

    def has_member(self, username: str) -> bool:
        return username in self.members


def groups_of_user(user: User, groups: List[Group]) -> List[Group]:
    """Groups the user belongs to: the primary group plus explicit memberships."""
    return [
        g for g in groups
        if g.gid == user.primary_gid or g.has_member(user.name)
    ]


@dataclass(frozen=True)
class GroupSummary:
    """Counts over a group's primary and secondary members."""
    primary_members: int = 0
    secondary_members: int = 0
    interactive: int = 0
    non_interactive: int = 0
    system_accounts: int = 0
    user_accounts: int = 0
    locked: int = 0
    no_password: int = 0
    expired: int = 0
    orphans: int = 0


def summarize_group(group: Group, users: List[User], system_id_threshold: int = 1000) -> GroupSummary:
    """
    Tally the accounts in `group`.

    The member set is the explicit member list plus every user whose primary
    group this is. Names that match no account count as orphans and are left
    out of every other tally.
    """
    by_name = {u.name: u for u in users}
    primary = [u.name for u in users if u.primary_gid == group.gid]
    members = sorted(set(group.members) | set(primary))

    counts = dict.fromkeys(
        ("interactive", "non_interactive", "system_accounts", "user_accounts",
         "locked", "no_password", "expired", "orphans"),
        0,
    )
    for name in members:
        user = by_name.get(name)
        if user is None:
            counts["orphans"] += 1
            continue
        counts["non_interactive" if user.has_inactive_shell else "interactive"] += 1
        counts["system_accounts" if user.uid < system_id_threshold else "user_accounts"] += 1
        counts["locked"] += user.password.locked
        counts["no_password"] += user.password.no_password
        counts["expired"] += user.password.expired

    return GroupSummary(
        primary_members=len(primary),
        secondary_members=len(group.members),
        **counts,
    )
