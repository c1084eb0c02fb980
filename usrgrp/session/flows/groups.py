"""
groups.py — Group-side workflows.

GroupActions → GroupCreateInput | GroupDeleteConfirm | GroupModifyMenu
GroupModifyMenu → AddMembersPicker | RemoveMembersPicker | GroupRenameInput
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from usrgrp.config.keymap import Action, KeyEvent
from usrgrp.privileged.models import (
    AddMembersToGroup,
    CreateGroup,
    DeleteGroup,
    RemoveMembersFromGroup,
    RenameGroup,
)
from usrgrp.records.models import Group
from usrgrp.session.flows.common import chosen, edit_text, menu_move, picker_move, toggle_choice
from usrgrp.session.modals import (
    AddMembersPicker,
    GroupActions,
    GroupCreateInput,
    GroupDeleteConfirm,
    GroupModifyMenu,
    GroupRenameInput,
    Info,
    RemoveMembersPicker,
)

if TYPE_CHECKING:
    from usrgrp.session.controller import Controller

EMPTY_NAME = "Group name cannot be empty"


def _target(ctl: Controller, gid: Optional[int]) -> Optional[Group]:
    group = ctl.session.store.find_group(gid) if gid is not None else None
    if group is None:
        ctl.session.open_modal(Info("No such group"))
    return group


def on_group_actions(ctl: Controller, modal: GroupActions, event: KeyEvent) -> None:
    if menu_move(modal, event):
        return
    s = ctl.session
    if event.action == Action.BACK:
        s.close_modal()
    elif event.action == Action.CONFIRM:
        if modal.selected == 0:
            s.open_modal(GroupCreateInput(gid=modal.gid))
        elif _target(ctl, modal.gid) is not None:
            if modal.selected == 1:
                s.open_modal(GroupDeleteConfirm(modal.gid))
            else:
                s.open_modal(GroupModifyMenu(modal.gid))


def on_group_create(ctl: Controller, modal: GroupCreateInput, event: KeyEvent) -> None:
    if event.action == Action.CONFIRM:
        name = modal.value.strip()
        if not name:
            ctl.session.open_modal(Info(EMPTY_NAME))
        else:
            ctl.submit(CreateGroup(groupname=name))
    elif event.action == Action.BACK and not modal.value:
        if modal.gid is None:
            ctl.session.close_modal()
        else:
            ctl.session.open_modal(GroupActions(modal.gid, selected=0))
    else:
        value = edit_text(modal.value, event)
        if value is not None:
            modal.value = value


def on_group_delete(ctl: Controller, modal: GroupDeleteConfirm, event: KeyEvent) -> None:
    if event.action == Action.BACK:
        ctl.session.open_modal(GroupActions(modal.gid, selected=1))
    elif event.action == Action.CONFIRM:
        if modal.selected != 0:
            ctl.session.close_modal()
            return
        group = _target(ctl, modal.gid)
        if group is not None:
            ctl.submit(DeleteGroup(groupname=group.name))
    else:
        modal.selected = toggle_choice(modal.selected, event)


def on_group_modify_menu(ctl: Controller, modal: GroupModifyMenu, event: KeyEvent) -> None:
    if menu_move(modal, event):
        return
    s = ctl.session
    if event.action == Action.BACK:
        s.open_modal(GroupActions(modal.gid, selected=2))
    elif event.action == Action.CONFIRM:
        if modal.selected == 0:
            s.open_modal(AddMembersPicker(modal.gid))
        elif modal.selected == 1:
            s.open_modal(RemoveMembersPicker(modal.gid))
        else:
            group = _target(ctl, modal.gid)
            if group is None:
                return
            if group.gid < ctl.system_id_threshold:
                s.open_modal(Info(
                    f"Renaming system groups is disabled ({group.name}: GID {group.gid})."
                ))
            else:
                s.open_modal(GroupRenameInput(modal.gid))


def _on_member_picker(ctl: Controller, modal, event: KeyEvent, back_row: int, build) -> None:
    names = ctl.candidates(modal)
    picker = modal.picker
    if picker_move(picker, event, len(names)):
        return
    if event.action == Action.BACK:
        ctl.session.open_modal(GroupModifyMenu(modal.gid, selected=back_row))
    elif event.action == Action.TOGGLE and names:
        picker.toggle_mark(names[picker.selected])
    elif event.action == Action.CONFIRM:
        if not names:
            ctl.session.close_modal()
            return
        group = _target(ctl, modal.gid)
        if group is not None:
            ctl.submit(build(groupname=group.name, usernames=chosen(picker, names)))


def on_add_members(ctl: Controller, modal: AddMembersPicker, event: KeyEvent) -> None:
    _on_member_picker(ctl, modal, event, 0, AddMembersToGroup)


def on_remove_members(ctl: Controller, modal: RemoveMembersPicker, event: KeyEvent) -> None:
    _on_member_picker(ctl, modal, event, 1, RemoveMembersFromGroup)


def on_group_rename(ctl: Controller, modal: GroupRenameInput, event: KeyEvent) -> None:
    if event.action == Action.CONFIRM:
        new_name = modal.value.strip()
        if not new_name:
            ctl.session.open_modal(Info(EMPTY_NAME))
            return
        group = _target(ctl, modal.gid)
        if group is not None:
            ctl.submit(RenameGroup(old_name=group.name, new_name=new_name))
    elif event.action == Action.BACK and not modal.value:
        ctl.session.open_modal(GroupModifyMenu(modal.gid, selected=2))
    else:
        value = edit_text(modal.value, event)
        if value is not None:
            modal.value = value
