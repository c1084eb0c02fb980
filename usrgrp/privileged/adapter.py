"""
adapter.py — Runs the OS account-management commands, escalating through sudo.

Escalation:
- effective uid 0: run the command directly
- no credential: fail with "Authentication required"
- otherwise: `sudo -S -p "" -v` with the credential on stdin, then `sudo -n cmd`

Every method performs its command(s) or raises PrivilegedError.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import List, Optional, Sequence

logger = logging.getLogger("usrgrp.privileged")

AUTH_REQUIRED = "Authentication required"


class PrivilegedError(Exception):
    """A privileged command failed. `credential_accepted` is True once sudo took the credential."""

    def __init__(self, reason: str, credential_accepted: bool = False):
        super().__init__(reason)
        self.reason = reason
        self.credential_accepted = credential_accepted


class AuthenticationRequired(PrivilegedError):
    """No credential, or sudo rejected the one supplied."""

    def __init__(self, reason: str = AUTH_REQUIRED):
        super().__init__(reason, credential_accepted=False)


def format_cli_error(cmd: str, result: subprocess.CompletedProcess) -> str:
    stderr = (result.stderr or "").strip()
    if stderr:
        return f"{cmd} failed: {stderr}"
    return f"{cmd} returned non-zero status: {result.returncode}"


# ============================================================================
# Command runner
# ============================================================================

class CommandRunner:
    """Thin subprocess wrapper, replaced by a fake in tests."""

    def run(self, cmd: Sequence[str], input_text: Optional[str] = None) -> subprocess.CompletedProcess:
        logger.debug(f"exec: {cmd[0]} ({len(cmd) - 1} args)")
        try:
            return subprocess.run(
                list(cmd),
                input=input_text,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            return subprocess.CompletedProcess(list(cmd), 127, "", str(e))

    def is_root(self) -> bool:
        return os.geteuid() == 0


# ============================================================================
# System adapter
# ============================================================================

class SystemAdapter:
    """One method per account mutation."""

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        credential: Optional[str] = None,
        sudo_group: str = "wheel",
    ):
        self.runner = runner or CommandRunner()
        self.credential = credential
        self.sudo_group = sudo_group

    def with_credential(self, credential: Optional[str]) -> SystemAdapter:
        return SystemAdapter(self.runner, credential, self.sudo_group)

    # ------------------------------------------------------------------
    # Escalation
    # ------------------------------------------------------------------

    def run_privileged(self, cmd: str, args: List[str], input_text: Optional[str] = None) -> None:
        if self.runner.is_root():
            result = self.runner.run([cmd, *args], input_text)
            if result.returncode != 0:
                raise PrivilegedError(format_cli_error(cmd, result), credential_accepted=True)
            return

        if not self.credential:
            raise AuthenticationRequired()

        check = self.runner.run(["sudo", "-S", "-p", "", "-v"], self.credential + "\n")
        if check.returncode != 0:
            logger.info("sudo rejected the supplied credential")
            raise AuthenticationRequired(format_cli_error("sudo", check))

        result = self.runner.run(["sudo", "-n", cmd, *args], input_text)
        if result.returncode != 0:
            raise PrivilegedError(format_cli_error(cmd, result), credential_accepted=True)

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def add_user_to_group(self, username: str, groupname: str) -> None:
        self.run_privileged("gpasswd", ["-a", username, groupname])

    def remove_user_from_group(self, username: str, groupname: str) -> None:
        self.run_privileged("gpasswd", ["-d", username, groupname])

    def create_group(self, groupname: str) -> None:
        self.run_privileged("groupadd", [groupname])

    def delete_group(self, groupname: str) -> None:
        # Already gone counts as deleted
        if not self._group_exists(groupname):
            logger.info(f"Group {groupname!r} already absent")
            return
        self.run_privileged("groupdel", [groupname])

    def rename_group(self, old_name: str, new_name: str) -> None:
        self.run_privileged("groupmod", ["-n", new_name, old_name])

    def _group_exists(self, groupname: str) -> bool:
        result = self.runner.run(["getent", "group", groupname])
        return result.returncode == 0

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def change_shell(self, username: str, shell: str) -> None:
        self.run_privileged("usermod", ["-s", shell, username])

    def change_fullname(self, username: str, fullname: str) -> None:
        self.run_privileged("usermod", ["-c", fullname, username])

    def change_username(self, old_username: str, new_username: str) -> None:
        self.run_privileged("usermod", ["-l", new_username, old_username])

    def create_user(self, username: str, create_home: bool) -> None:
        args = ["-m", username] if create_home else [username]
        self.run_privileged("useradd", args)

    def delete_user(self, username: str, delete_home: bool) -> None:
        args = ["-r", username] if delete_home else [username]
        self.run_privileged("userdel", args)

    def set_password(self, username: str, password: str) -> None:
        self.run_privileged("chpasswd", [], input_text=f"{username}:{password}\n")

    def expire_password(self, username: str) -> None:
        self.run_privileged("chage", ["-d", "0", username])
