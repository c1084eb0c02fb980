"""
Modal transition handlers, one per modal state.

dispatch() applies Cancel uniformly, then hands the event to the handler
registered for the active modal's type.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict

from usrgrp.config.keymap import Action, KeyEvent
from usrgrp.session import modals as m
from usrgrp.session.flows import common, groups, users

if TYPE_CHECKING:
    from usrgrp.session.controller import Controller


HANDLERS: Dict[type, Callable] = {
    m.UserActions: users.on_user_actions,
    m.UserModifyMenu: users.on_user_modify_menu,
    m.AddToGroupsPicker: users.on_add_to_groups,
    m.RemoveFromGroupsPicker: users.on_remove_from_groups,
    m.UserDetailsMenu: users.on_user_details_menu,
    m.UsernameInput: users.on_username_input,
    m.FullnameInput: users.on_fullname_input,
    m.ShellPicker: users.on_shell_picker,
    m.PasswordMenu: users.on_password_menu,
    m.ChangePasswordForm: users.on_change_password,
    m.DeleteUserConfirm: users.on_delete_user,
    m.CreateUserForm: users.on_create_user,
    m.GroupActions: groups.on_group_actions,
    m.GroupCreateInput: groups.on_group_create,
    m.GroupDeleteConfirm: groups.on_group_delete,
    m.GroupModifyMenu: groups.on_group_modify_menu,
    m.AddMembersPicker: groups.on_add_members,
    m.RemoveMembersPicker: groups.on_remove_members,
    m.GroupRenameInput: groups.on_group_rename,
    m.FilterMenu: common.on_filter_menu,
    m.HelpModal: common.on_help,
    m.CredentialPrompt: common.on_credential_prompt,
    m.Info: common.on_info,
}


def dispatch(ctl: Controller, event: KeyEvent) -> None:
    session = ctl.session
    modal = session.modal
    if modal is None:
        session.close_modal()
        return
    if event.action == Action.CANCEL:
        session.close_modal()
        return

    handler = HANDLERS.get(type(modal))
    if handler is None:
        raise KeyError(f"No handler for modal {type(modal).__name__}")
    handler(ctl, modal, event)
