# usrgrp/privileged/models.py
"""
Pending actions: fully resolved account mutations awaiting execution.

Each model is frozen so the exact value can be retried after a credential
prompt. `kind` discriminates the union for (de)serialization.
"""

from typing import Annotated, ClassVar, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

USERS = "users"
GROUPS = "groups"


class PendingBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Record kinds to re-list after success
    refreshes: ClassVar[Tuple[str, ...]] = (USERS, GROUPS)
    # Fields never written to logs
    secret_fields: ClassVar[Tuple[str, ...]] = ()

    def describe(self) -> str:
        data = self.model_dump(exclude=set(self.secret_fields) | {"kind"})
        args = ", ".join(f"{k}={v!r}" for k, v in data.items())
        return f"{self.kind}({args})"


# ============================================================================
# Membership
# ============================================================================

class AddUserToGroup(PendingBase):
    kind: Literal["add_user_to_group"] = "add_user_to_group"
    username: str
    groupname: str
    refreshes: ClassVar[Tuple[str, ...]] = (GROUPS,)


class AddUserToGroups(PendingBase):
    kind: Literal["add_user_to_groups"] = "add_user_to_groups"
    username: str
    groupnames: Tuple[str, ...]
    refreshes: ClassVar[Tuple[str, ...]] = (GROUPS,)


class RemoveUserFromGroup(PendingBase):
    kind: Literal["remove_user_from_group"] = "remove_user_from_group"
    username: str
    groupname: str
    refreshes: ClassVar[Tuple[str, ...]] = (GROUPS,)


class RemoveUserFromGroups(PendingBase):
    kind: Literal["remove_user_from_groups"] = "remove_user_from_groups"
    username: str
    groupnames: Tuple[str, ...]
    refreshes: ClassVar[Tuple[str, ...]] = (GROUPS,)


class AddMembersToGroup(PendingBase):
    kind: Literal["add_members_to_group"] = "add_members_to_group"
    groupname: str
    usernames: Tuple[str, ...]
    refreshes: ClassVar[Tuple[str, ...]] = (GROUPS,)


class RemoveMembersFromGroup(PendingBase):
    kind: Literal["remove_members_from_group"] = "remove_members_from_group"
    groupname: str
    usernames: Tuple[str, ...]
    refreshes: ClassVar[Tuple[str, ...]] = (GROUPS,)


# ============================================================================
# User details
# ============================================================================

class ChangeShell(PendingBase):
    kind: Literal["change_shell"] = "change_shell"
    username: str
    shell: str
    refreshes: ClassVar[Tuple[str, ...]] = (USERS,)


class ChangeFullname(PendingBase):
    kind: Literal["change_fullname"] = "change_fullname"
    username: str
    fullname: str
    refreshes: ClassVar[Tuple[str, ...]] = (USERS,)


class ChangeUsername(PendingBase):
    kind: Literal["change_username"] = "change_username"
    old_username: str
    new_username: str


# ============================================================================
# Groups
# ============================================================================

class CreateGroup(PendingBase):
    kind: Literal["create_group"] = "create_group"
    groupname: str
    refreshes: ClassVar[Tuple[str, ...]] = (GROUPS,)


class DeleteGroup(PendingBase):
    kind: Literal["delete_group"] = "delete_group"
    groupname: str
    refreshes: ClassVar[Tuple[str, ...]] = (GROUPS,)


class RenameGroup(PendingBase):
    kind: Literal["rename_group"] = "rename_group"
    old_name: str
    new_name: str


# ============================================================================
# Accounts and passwords
# ============================================================================

class CreateUser(PendingBase):
    kind: Literal["create_user"] = "create_user"
    username: str
    password: Optional[str] = None
    create_home: bool = True
    add_to_sudo_group: bool = False
    secret_fields: ClassVar[Tuple[str, ...]] = ("password",)


class DeleteUser(PendingBase):
    kind: Literal["delete_user"] = "delete_user"
    username: str
    delete_home: bool = False


class SetPassword(PendingBase):
    kind: Literal["set_password"] = "set_password"
    username: str
    password: str
    must_change: bool = False
    refreshes: ClassVar[Tuple[str, ...]] = (USERS,)
    secret_fields: ClassVar[Tuple[str, ...]] = ("password",)


class ExpirePassword(PendingBase):
    kind: Literal["expire_password"] = "expire_password"
    username: str
    refreshes: ClassVar[Tuple[str, ...]] = (USERS,)


PendingAction = Annotated[
    Union[
        AddUserToGroup,
        AddUserToGroups,
        RemoveUserFromGroup,
        RemoveUserFromGroups,
        AddMembersToGroup,
        RemoveMembersFromGroup,
        ChangeShell,
        ChangeFullname,
        ChangeUsername,
        CreateGroup,
        DeleteGroup,
        RenameGroup,
        CreateUser,
        DeleteUser,
        SetPassword,
        ExpirePassword,
    ],
    Field(discriminator="kind"),
]

_ADAPTER: TypeAdapter = TypeAdapter(PendingAction)


def dump_action(action: PendingBase) -> dict:
    return action.model_dump()


def load_action(data: dict) -> PendingBase:
    return _ADAPTER.validate_python(data)
