"""
users.py — User-side workflows.

UserActions → UserModifyMenu → pickers / details / password
UserActions → DeleteUserConfirm
CreateUserForm (from the NewUser key)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from usrgrp.config.keymap import Action, KeyEvent
from usrgrp.privileged.models import (
    AddUserToGroup,
    AddUserToGroups,
    ChangeFullname,
    ChangeShell,
    ChangeUsername,
    CreateUser,
    DeleteUser,
    ExpirePassword,
    RemoveUserFromGroup,
    RemoveUserFromGroups,
    SetPassword,
)
from usrgrp.records.models import User
from usrgrp.session.flows.common import chosen, edit_text, menu_move, picker_move, toggle_choice
from usrgrp.session.modals import (
    AddToGroupsPicker,
    ChangePasswordForm,
    CreateUserForm,
    DeleteUserConfirm,
    FullnameInput,
    Info,
    PasswordMenu,
    RemoveFromGroupsPicker,
    ShellPicker,
    UserActions,
    UserDetailsMenu,
    UserModifyMenu,
    UsernameInput,
)

if TYPE_CHECKING:
    from usrgrp.session.controller import Controller

PASSWORD_MISMATCH = "Passwords do not match or empty"


def open_delete(ctl: Controller, user: User) -> None:
    """Open the delete confirmation, or refuse outright outside the regular uid range."""
    low, high = ctl.regular_uid_range
    allowed = low <= user.uid <= high
    if not allowed:
        ctl.session.open_modal(Info(
            f"Deletion not allowed. Only UID {low}-{high} allowed: {user.name}"
        ))
        return
    ctl.session.open_modal(DeleteUserConfirm(username=user.name, allowed=allowed))


def _target(ctl: Controller, username: str):
    user = ctl.session.store.find_user(username)
    if user is None:
        ctl.session.open_modal(Info(f"User '{username}' no longer exists"))
    return user


# ============================================================================
# Menus
# ============================================================================

def on_user_actions(ctl: Controller, modal: UserActions, event: KeyEvent) -> None:
    if menu_move(modal, event):
        return
    if event.action == Action.BACK:
        ctl.session.close_modal()
    elif event.action == Action.CONFIRM:
        if modal.selected == 0:
            ctl.session.open_modal(UserModifyMenu(modal.username))
        else:
            user = _target(ctl, modal.username)
            if user is not None:
                open_delete(ctl, user)


def on_user_modify_menu(ctl: Controller, modal: UserModifyMenu, event: KeyEvent) -> None:
    if menu_move(modal, event):
        return
    name = modal.username
    if event.action == Action.BACK:
        ctl.session.open_modal(UserActions(name, selected=0))
    elif event.action == Action.CONFIRM:
        successors = (AddToGroupsPicker, RemoveFromGroupsPicker, UserDetailsMenu, PasswordMenu)
        ctl.session.open_modal(successors[modal.selected](name))


def on_user_details_menu(ctl: Controller, modal: UserDetailsMenu, event: KeyEvent) -> None:
    if menu_move(modal, event):
        return
    name = modal.username
    if event.action == Action.BACK:
        ctl.session.open_modal(UserModifyMenu(name, selected=2))
    elif event.action == Action.CONFIRM:
        if modal.selected == 0:
            ctl.session.open_modal(UsernameInput(name))
        elif modal.selected == 1:
            ctl.session.open_modal(FullnameInput(name))
        else:
            _open_shell_picker(ctl, name)


def _open_shell_picker(ctl: Controller, username: str) -> None:
    modal = ShellPicker(username)
    shells = ctl.shells()
    user = ctl.session.store.find_user(username)
    if user is not None and user.shell in shells:
        modal.picker.move(shells.index(user.shell), len(shells))
    ctl.session.open_modal(modal)


def on_password_menu(ctl: Controller, modal: PasswordMenu, event: KeyEvent) -> None:
    if menu_move(modal, event):
        return
    if event.action == Action.BACK:
        ctl.session.open_modal(UserModifyMenu(modal.username, selected=3))
    elif event.action == Action.CONFIRM:
        if modal.selected == 0:
            ctl.session.open_modal(ChangePasswordForm(modal.username))
        else:
            ctl.submit(ExpirePassword(username=modal.username))


# ============================================================================
# Pickers
# ============================================================================

def on_add_to_groups(ctl: Controller, modal: AddToGroupsPicker, event: KeyEvent) -> None:
    names = ctl.candidates(modal)
    picker = modal.picker
    if picker_move(picker, event, len(names)):
        return
    if event.action == Action.BACK:
        ctl.session.open_modal(UserModifyMenu(modal.username, selected=0))
    elif event.action == Action.TOGGLE and names:
        picker.toggle_mark(names[picker.selected])
    elif event.action == Action.CONFIRM:
        if not names:
            ctl.session.close_modal()
            return
        groups = chosen(picker, names)
        if len(groups) == 1:
            ctl.submit(AddUserToGroup(username=modal.username, groupname=groups[0]))
        else:
            ctl.submit(AddUserToGroups(username=modal.username, groupnames=groups))


def on_remove_from_groups(ctl: Controller, modal: RemoveFromGroupsPicker, event: KeyEvent) -> None:
    names = ctl.candidates(modal)
    picker = modal.picker
    if picker_move(picker, event, len(names)):
        return
    if event.action == Action.BACK:
        ctl.session.open_modal(UserModifyMenu(modal.username, selected=1))
    elif event.action == Action.TOGGLE and names:
        picker.toggle_mark(names[picker.selected])
    elif event.action == Action.CONFIRM:
        if not names:
            ctl.session.close_modal()
            return
        user = _target(ctl, modal.username)
        if user is None:
            return
        primary = ctl.session.store.find_group(user.primary_gid)
        primary_name = primary.name if primary is not None else None
        if picker.marked:
            groups = [g for g in chosen(picker, names) if g != primary_name]
            if not groups:
                ctl.session.open_modal(Info("No valid groups selected (cannot remove primary)."))
                return
        elif names[picker.selected] == primary_name:
            ctl.session.open_modal(Info("Cannot remove user from primary group."))
            return
        else:
            groups = [names[picker.selected]]

        if len(groups) == 1:
            ctl.submit(RemoveUserFromGroup(username=user.name, groupname=groups[0]))
        else:
            ctl.submit(RemoveUserFromGroups(username=user.name, groupnames=groups))


def on_shell_picker(ctl: Controller, modal: ShellPicker, event: KeyEvent) -> None:
    shells = ctl.candidates(modal)
    if picker_move(modal.picker, event, len(shells)):
        return
    if event.action == Action.BACK:
        ctl.session.open_modal(UserDetailsMenu(modal.username, selected=2))
    elif event.action == Action.CONFIRM:
        if not shells:
            ctl.session.close_modal()
            return
        ctl.submit(ChangeShell(username=modal.username, shell=shells[modal.picker.selected]))


# ============================================================================
# Text inputs
# ============================================================================

def on_username_input(ctl: Controller, modal: UsernameInput, event: KeyEvent) -> None:
    if event.action == Action.CONFIRM:
        new_name = modal.value.strip()
        if not new_name:
            ctl.session.open_modal(Info("Username cannot be empty"))
        else:
            ctl.submit(ChangeUsername(old_username=modal.username, new_username=new_name))
    elif event.action == Action.BACK and not modal.value:
        ctl.session.open_modal(UserDetailsMenu(modal.username, selected=0))
    else:
        value = edit_text(modal.value, event)
        if value is not None:
            modal.value = value


def on_fullname_input(ctl: Controller, modal: FullnameInput, event: KeyEvent) -> None:
    if event.action == Action.CONFIRM:
        ctl.submit(ChangeFullname(username=modal.username, fullname=modal.value.strip()))
    elif event.action == Action.BACK and not modal.value:
        ctl.session.open_modal(UserDetailsMenu(modal.username, selected=1))
    else:
        value = edit_text(modal.value, event)
        if value is not None:
            modal.value = value


# ============================================================================
# Forms
# ============================================================================

def _form_move(modal, event: KeyEvent) -> bool:
    # Arrow keys only; printable chars belong to the text rows
    if event.char:
        return False
    if event.action == Action.MOVE_UP:
        modal.selected = max(0, modal.selected - 1)
    elif event.action == Action.MOVE_DOWN:
        modal.selected = min(modal.ROWS - 1, modal.selected + 1)
    else:
        return False
    return True


def on_change_password(ctl: Controller, modal: ChangePasswordForm, event: KeyEvent) -> None:
    if _form_move(modal, event):
        return
    row = modal.selected
    field = ("password", "confirm")[row] if row < 2 else None

    if event.action == Action.CONFIRM:
        if row < 3:
            if row == 2:
                modal.must_change = not modal.must_change
            else:
                modal.selected += 1
            return
        if not modal.password or modal.password != modal.confirm:
            ctl.session.open_modal(Info(PASSWORD_MISMATCH))
            return
        ctl.submit(SetPassword(
            username=modal.username,
            password=modal.password,
            must_change=modal.must_change,
        ))
    elif field is not None:
        current = getattr(modal, field)
        if event.action == Action.BACK and not current:
            ctl.session.open_modal(PasswordMenu(modal.username, selected=0))
            return
        value = edit_text(current, event)
        if value is not None:
            setattr(modal, field, value)
    elif event.action == Action.TOGGLE and row == 2:
        modal.must_change = not modal.must_change
    elif event.action == Action.BACK:
        ctl.session.open_modal(PasswordMenu(modal.username, selected=0))


def on_create_user(ctl: Controller, modal: CreateUserForm, event: KeyEvent) -> None:
    if _form_move(modal, event):
        return
    row = modal.selected
    field = ("name", "password", "confirm")[row] if row < 3 else None
    toggles = {3: "create_home", 4: "add_to_sudo_group"}

    if event.action == Action.CONFIRM:
        if row in toggles:
            setattr(modal, toggles[row], not getattr(modal, toggles[row]))
        elif row < 5:
            modal.selected += 1
        else:
            _submit_create_user(ctl, modal)
    elif field is not None:
        current = getattr(modal, field)
        if event.action == Action.BACK and not current:
            ctl.session.close_modal()
            return
        value = edit_text(current, event)
        if value is not None:
            setattr(modal, field, value)
    elif event.action == Action.TOGGLE and row in toggles:
        setattr(modal, toggles[row], not getattr(modal, toggles[row]))
    elif event.action == Action.BACK:
        ctl.session.close_modal()


def _submit_create_user(ctl: Controller, modal: CreateUserForm) -> None:
    name = modal.name.strip()
    if not name:
        ctl.session.open_modal(Info("Username cannot be empty"))
        return
    if modal.password != modal.confirm:
        ctl.session.open_modal(Info(PASSWORD_MISMATCH))
        return
    ctl.submit(CreateUser(
        username=name,
        password=modal.password or None,
        create_home=modal.create_home,
        add_to_sudo_group=modal.add_to_sudo_group,
    ))


# ============================================================================
# Delete
# ============================================================================

def on_delete_user(ctl: Controller, modal: DeleteUserConfirm, event: KeyEvent) -> None:
    if event.action == Action.BACK:
        ctl.session.open_modal(UserActions(modal.username, selected=1))
    elif event.action == Action.TOGGLE:
        modal.delete_home = not modal.delete_home
    elif event.action == Action.CONFIRM:
        if modal.selected != 0 or not modal.allowed:
            ctl.session.close_modal()
            return
        ctl.submit(DeleteUser(username=modal.username, delete_home=modal.delete_home))
    else:
        modal.selected = toggle_choice(modal.selected, event)
