"""
search.py — Filter and search pipeline for the visible record lists.

Filters always apply first. The query narrows a record kind only while the
session is searching that kind. Output keeps source order.
"""

from __future__ import annotations

from typing import List, Optional

from usrgrp.config.filters import FilterSettings, GroupsFilter, UsersFilter
from usrgrp.records.models import Group, User

# Ids below this are system accounts
SYSTEM_ID_THRESHOLD = 1000


def user_matches(user: User, query: str) -> bool:
    """`query` must already be lowercase."""
    fields = (
        user.name,
        user.full_name or "",
        user.home_dir,
        user.shell,
        str(user.uid),
        str(user.primary_gid),
    )
    return any(query in f.lower() for f in fields)


def group_matches(group: Group, query: str) -> bool:
    if query in group.name.lower() or query in str(group.gid):
        return True
    return any(query in m.lower() for m in group.members)


def passes_user_filters(
    user: User, settings: FilterSettings, threshold: int = SYSTEM_ID_THRESHOLD
) -> bool:
    if settings.users_filter == UsersFilter.HUMAN and user.uid < threshold:
        return False
    if settings.users_filter == UsersFilter.SYSTEM and user.uid >= threshold:
        return False

    chips = settings.chips
    if chips.inactive and not user.has_inactive_shell:
        return False
    if chips.no_home and user.home_exists:
        return False
    if chips.locked and not user.password.locked:
        return False
    if chips.no_password and not user.password.no_password:
        return False
    if chips.expired and not user.password.expired:
        return False
    return True


def passes_group_filters(
    group: Group, settings: FilterSettings, threshold: int = SYSTEM_ID_THRESHOLD
) -> bool:
    if settings.groups_filter == GroupsFilter.USER and group.gid < threshold:
        return False
    if settings.groups_filter == GroupsFilter.SYSTEM and group.gid >= threshold:
        return False
    return True


def filter_users(
    users: List[User],
    settings: FilterSettings,
    query: Optional[str] = None,
    threshold: int = SYSTEM_ID_THRESHOLD,
) -> List[User]:
    q = (query or "").lower()
    return [
        u for u in users
        if passes_user_filters(u, settings, threshold) and (not q or user_matches(u, q))
    ]


def filter_groups(
    groups: List[Group],
    settings: FilterSettings,
    query: Optional[str] = None,
    threshold: int = SYSTEM_ID_THRESHOLD,
) -> List[Group]:
    q = (query or "").lower()
    return [
        g for g in groups
        if passes_group_filters(g, settings, threshold) and (not q or group_matches(g, q))
    ]
