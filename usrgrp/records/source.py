"""
source.py — Reads users, groups and shells from the system databases.

Features:
- /etc/passwd and /etc/group parsing (malformed lines skipped)
- Best-effort /etc/shadow read for locked / empty / expired passwords
- /etc/shells listing for the shell picker
- Records sorted by numeric id once, at load time
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from usrgrp.records.hostinfo import mtime_days
from usrgrp.records.models import Group, PasswordStatus, User

logger = logging.getLogger("usrgrp.records")


class RecordSourceError(Exception):
    """A system database could not be read."""


# ============================================================================
# Line parsers
# ============================================================================

def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def parse_passwd(text: str) -> List[User]:
    users: List[User] = []
    for line in text.splitlines():
        if not line or line.startswith("#"):
            continue
        parts = line.split(":")
        if len(parts) < 7:
            continue
        gecos = parts[4].split(",")[0]
        users.append(User(
            name=parts[0],
            uid=_to_int(parts[2]),
            primary_gid=_to_int(parts[3]),
            full_name=gecos or None,
            home_dir=parts[5],
            shell=parts[6],
        ))
    return users


def parse_group(text: str) -> List[Group]:
    groups: List[Group] = []
    for line in text.splitlines():
        if not line or line.startswith("#"):
            continue
        parts = line.split(":")
        if len(parts) < 3:
            continue
        members = parts[3] if len(parts) > 3 else ""
        groups.append(Group(
            name=parts[0],
            gid=_to_int(parts[2]),
            members=[m.strip() for m in members.split(",") if m.strip()],
        ))
    return groups


def parse_shells(text: str) -> List[str]:
    return [
        line.strip() for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]


def parse_shadow(text: str, today: Optional[int] = None) -> Dict[str, PasswordStatus]:
    """
    Map account name to PasswordStatus.

    `today` is days since the epoch. A password is expired when its last
    change is 0 (forced change), when last change + max days is in the past,
    or when the account expiry date is in the past.
    """
    if today is None:
        today = int(time.time() // 86400)

    status: Dict[str, PasswordStatus] = {}
    for line in text.splitlines():
        parts = line.split(":")
        if len(parts) < 2 or not parts[0]:
            continue
        parts += [""] * (9 - len(parts))
        name, pw_hash, last_change, _min, max_days, _warn, _inactive, expire = parts[:8]

        expired = False
        if last_change == "0":
            expired = True
        elif last_change.isdigit() and max_days.isdigit():
            expired = int(last_change) + int(max_days) < today
        if expire.isdigit() and int(expire) < today:
            expired = True

        status[name] = PasswordStatus(
            locked=pw_hash.startswith("!"),
            no_password=pw_hash == "",
            expired=expired,
            last_change=int(last_change) if last_change.isdigit() else None,
            expire=int(expire) if expire.isdigit() else None,
        )
    return status


# ============================================================================
# System record source
# ============================================================================

@dataclass
class SourcePaths:
    passwd: Path = Path("/etc/passwd")
    group: Path = Path("/etc/group")
    shadow: Path = Path("/etc/shadow")
    shells: Path = Path("/etc/shells")


class SystemRecordSource:
    """Reads records straight from the account database files."""

    def __init__(self, paths: Optional[SourcePaths] = None):
        self.paths = paths or SourcePaths()

    def _read(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise RecordSourceError(f"Cannot read {path}: {e}") from e

    def _shadow_status(self) -> Dict[str, PasswordStatus]:
        try:
            return parse_shadow(self._read(self.paths.shadow))
        except RecordSourceError as e:
            # Unprivileged runs cannot read shadow
            logger.debug(f"Shadow unavailable: {e}")
            return {}

    def list_users(self) -> List[User]:
        users = parse_passwd(self._read(self.paths.passwd))
        shadow = self._shadow_status()
        result = [
            User(
                name=u.name,
                uid=u.uid,
                primary_gid=u.primary_gid,
                full_name=u.full_name,
                home_dir=u.home_dir,
                shell=u.shell,
                home_exists=bool(u.home_dir) and os.path.isdir(u.home_dir),
                password=shadow.get(u.name, PasswordStatus()),
            )
            for u in users
        ]
        result.sort(key=lambda u: u.uid)
        return result

    def list_groups(self) -> List[Group]:
        groups = parse_group(self._read(self.paths.group))
        groups.sort(key=lambda g: g.gid)
        return groups

    def list_shells(self) -> List[str]:
        return parse_shells(self._read(self.paths.shells))

    def group_mtime(self) -> Optional[int]:
        """Day (since the epoch) the group database was last written."""
        return mtime_days(self.paths.group)


def current_username() -> Optional[str]:
    """Name of the account running the console, if it can be resolved."""
    for var in ("SUDO_USER", "USER", "LOGNAME"):
        name = os.environ.get(var)
        if name:
            return name
    return None
