"""
conftest.py — Shared pytest configuration and fixtures

This file is automatically loaded by pytest.
"""

import pytest
import sys
from pathlib import Path

# Ensure the project root is in the path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from usrgrp.privileged.adapter import AuthenticationRequired, PrivilegedError
from usrgrp.privileged.coordinator import Coordinator
from usrgrp.records.models import Group, PasswordStatus, User
from usrgrp.session.controller import Controller
from usrgrp.session.state import Session


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


# ============================================================================
# Fakes
# ============================================================================

class FakeSource:
    """In-memory record source counting how often each list is read."""

    def __init__(self, users, groups, shells=None):
        self.users = list(users)
        self.groups = list(groups)
        self.shells = list(shells or ["/bin/bash", "/bin/zsh", "/usr/sbin/nologin"])
        self.user_reads = 0
        self.group_reads = 0
        self.mtime = None

    def list_users(self):
        self.user_reads += 1
        return list(self.users)

    def list_groups(self):
        self.group_reads += 1
        return list(self.groups)

    def list_shells(self):
        return list(self.shells)

    def group_mtime(self):
        return self.mtime


class FakeAdapter:
    """
    Stands in for SystemAdapter.

    `password`: the only credential accepted (None means no sudo needed).
    `fail_with`: reason raised after authentication succeeds.
    `fail_on`: restrict `fail_with` to this one adapter method.
    """

    def __init__(self, password=None, fail_with=None, sudo_group="wheel", fail_on=None):
        self.password = password
        self.fail_with = fail_with
        self.fail_on = fail_on
        self.sudo_group = sudo_group
        self.credential = None
        self.calls = []
        self.invocations = 0

    def with_credential(self, credential):
        self.credential = credential
        self.invocations += 1
        return self

    def _run(self, name, *args):
        if self.password is not None:
            if not self.credential:
                raise AuthenticationRequired()
            if self.credential != self.password:
                raise AuthenticationRequired("sudo failed: Sorry, try again.")
        if self.fail_with and self.fail_on in (None, name):
            raise PrivilegedError(self.fail_with, credential_accepted=True)
        self.calls.append((name, *args))

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return lambda *args: self._run(name, *args)


# ============================================================================
# Fixtures available to all tests
# ============================================================================

@pytest.fixture
def scenario_users():
    """The three-account list used by the search scenarios."""
    return [
        User(name="daemon", uid=999, primary_gid=999, home_dir="/", shell="/usr/sbin/nologin"),
        User(name="alice", uid=1000, primary_gid=1000, full_name="Alice Liddell",
             home_dir="/home/alice", shell="/bin/bash"),
        User(name="bob", uid=1001, primary_gid=1001, home_dir="/home/bob", shell="/bin/zsh"),
    ]


@pytest.fixture
def scenario_groups():
    return [
        Group(name="wheel", gid=998, members=["root"]),
        Group(name="dev", gid=1001, members=["bob"]),
    ]


@pytest.fixture
def users():
    """A richer account list covering every filter chip."""
    return [
        User(name="root", uid=0, primary_gid=0, home_dir="/root", shell="/bin/bash"),
        User(name="daemon", uid=999, primary_gid=999, home_dir="/", shell="/usr/sbin/nologin"),
        User(name="alice", uid=1000, primary_gid=1000, full_name="Alice Liddell",
             home_dir="/home/alice", shell="/bin/bash"),
        User(name="bob", uid=1001, primary_gid=1001, home_dir="/home/bob", shell="/bin/zsh",
             password=PasswordStatus(locked=True)),
        User(name="carol", uid=1002, primary_gid=1002, home_dir="/home/carol", shell="/bin/false",
             home_exists=False, password=PasswordStatus(no_password=True, expired=True)),
        User(name="svc", uid=2500, primary_gid=2500, home_dir="/srv/svc", shell="/bin/sh"),
    ]


@pytest.fixture
def groups():
    return [
        Group(name="root", gid=0, members=[]),
        Group(name="wheel", gid=10, members=["root", "alice"]),
        Group(name="alice", gid=1000, members=[]),
        Group(name="bob", gid=1001, members=[]),
        Group(name="carol", gid=1002, members=[]),
        Group(name="dev", gid=1500, members=["alice", "bob"]),
        Group(name="svc", gid=2500, members=[]),
    ]


@pytest.fixture
def make_controller(users, groups):
    """Build a started Controller over fakes; returns (controller, source, adapter)."""

    def _make(adapter=None, users_=None, groups_=None, credential=None):
        source = FakeSource(users_ if users_ is not None else users,
                            groups_ if groups_ is not None else groups)
        adapter = adapter or FakeAdapter()
        session = Session()
        ctl = Controller(session, source, Coordinator(adapter))
        ctl.start()
        if credential is not None:
            session.remember_credential(credential)
        return ctl, source, adapter

    return _make


def press(ctl, *keys):
    """Feed key names to the controller in order."""
    for key in keys:
        ctl.handle_key(key)


def type_text(ctl, text):
    for ch in text:
        ctl.handle_key(ch)
