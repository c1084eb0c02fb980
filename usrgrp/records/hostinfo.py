"""
hostinfo.py — Best-effort facts about accounts read from the live system.

Features:
- Home directory permission bits
- authorized_keys entry count
- Running process count per UID (from /proc)
- File modification day, and epoch-day formatting for shadow dates

These only feed the details pane: anything unreadable comes back as None or 0
instead of raising.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

logger = logging.getLogger("usrgrp.records")

PROC_ROOT = Path("/proc")
EPOCH = date(1970, 1, 1)


@dataclass(frozen=True)
class UserFacts:
    home_mode: Optional[int] = None
    ssh_keys: int = 0
    processes: int = 0


def home_mode(home: str) -> Optional[int]:
    """Permission bits of `home`, or None if it is unset or cannot be stat'ed."""
    if not home:
        return None
    try:
        return os.stat(home).st_mode & 0o777
    except OSError:
        return None


def ssh_key_count(home: str) -> int:
    """Non-blank, non-comment lines in ~/.ssh/authorized_keys."""
    if not home:
        return 0
    path = Path(home) / ".ssh" / "authorized_keys"
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return 0
    return sum(
        1 for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    )


def process_count(uid: int, proc_root: Path = PROC_ROOT) -> int:
    """Processes whose real UID (first field of `Uid:`) is `uid`."""
    try:
        entries = list(proc_root.iterdir())
    except OSError as e:
        logger.debug(f"Process listing unavailable: {e}")
        return 0

    count = 0
    for entry in entries:
        if not entry.name.isdigit():
            continue
        try:
            status = (entry / "status").read_text(encoding="utf-8", errors="replace")
        except OSError:
            # Process exited between listing and reading
            continue
        for line in status.splitlines():
            if line.startswith("Uid:"):
                fields = line.split()
                if len(fields) > 1 and fields[1] == str(uid):
                    count += 1
                break
    return count


def collect_user_facts(home: str, uid: int, proc_root: Path = PROC_ROOT) -> UserFacts:
    return UserFacts(
        home_mode=home_mode(home),
        ssh_keys=ssh_key_count(home),
        processes=process_count(uid, proc_root),
    )


def mtime_days(path: Path) -> Optional[int]:
    try:
        return int(os.stat(path).st_mtime // 86400)
    except OSError:
        return None


def format_day(days: Optional[int]) -> str:
    """Render days since the epoch as an ISO date, '-' when unset."""
    if days is None:
        return "-"
    try:
        return (EPOCH + timedelta(days=days)).isoformat()
    except OverflowError:
        return str(days)
