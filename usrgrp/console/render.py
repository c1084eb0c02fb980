"""
render.py — Turns session state into prompt_toolkit formatted text.

Pure functions: they read the controller/session and never mutate it, apart
from the table renderer recording the page size it had room for.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Tuple

from prompt_toolkit.formatted_text import FormattedText

from usrgrp.config.filters import CHIP_NAMES
from usrgrp.config.keymap import iter_help_lines
from usrgrp.records.hostinfo import format_day
from usrgrp.records.models import Group, User, summarize_group
from usrgrp.records.source import current_username
from usrgrp.session.flows.common import GROUP_FILTER_ROWS, USER_FILTER_ROWS
from usrgrp.session.modals import (
    PICKER_ROWS,
    ChangePasswordForm,
    CreateUserForm,
    CredentialPrompt,
    DeleteUserConfirm,
    FilterMenu,
    FullnameInput,
    GroupCreateInput,
    GroupDeleteConfirm,
    GroupRenameInput,
    HelpModal,
    Info,
    MenuModal,
    Modal,
    UsernameInput,
)
from usrgrp.session.state import InputMode, Session, Tab, UsersFocus

if TYPE_CHECKING:
    from usrgrp.session.controller import Controller

Fragments = List[Tuple[str, str]]

CHIP_LABELS = {
    "inactive": "Inactive shell",
    "no_home": "No home directory",
    "locked": "Locked",
    "no_password": "No password",
    "expired": "Password expired",
}


def _row(fragments: Fragments, text: str, selected: bool, style: str = "class:row") -> None:
    fragments.append(("class:row.selected" if selected else style, text))
    fragments.append(("", "\n"))


def _mask(secret: str) -> str:
    return "*" * len(secret)


# ============================================================================
# Header / status
# ============================================================================

def render_header(session: Session) -> FormattedText:
    who = current_username() or "unknown"
    users_style = "class:tab.active" if session.active_tab == Tab.USERS else "class:tab"
    groups_style = "class:tab.active" if session.active_tab == Tab.GROUPS else "class:tab"
    return FormattedText([
        ("class:title", " usrgrp "),
        ("", " "),
        (users_style, " Users "),
        ("", " "),
        (groups_style, " Groups "),
        ("class:dim", f"   signed in as {who}"),
    ])


def render_status(session: Session) -> FormattedText:
    store = session.store
    counts = (
        f"users {len(store.users)}/{len(store.users_all)}  "
        f"groups {len(store.groups)}/{len(store.groups_all)}"
    )
    if session.input_mode in (InputMode.SEARCH_USERS, InputMode.SEARCH_GROUPS):
        return FormattedText([
            ("class:prompt", "/"),
            ("class:input", session.search_query),
            ("class:dim", f"   {counts}"),
        ])
    hint = "Enter: actions  /: search  f: filters  ?: help  q: quit"
    return FormattedText([("class:dim", f"{hint}   {counts}")])


# ============================================================================
# Tables
# ============================================================================

def _page(cursor: int, total: int, rows: int) -> range:
    rows = max(1, rows)
    start = (cursor // rows) * rows
    return range(start, min(total, start + rows))


def _user_line(u: User) -> str:
    return f" {u.uid:>6}  {u.name:<20} {(u.full_name or ''):<24} {u.shell}"


def _group_line(g: Group) -> str:
    return f" {g.gid:>6}  {g.name:<20} {', '.join(g.members)}"


def render_table(session: Session, height: int) -> FormattedText:
    # Header line plus one spare row
    session.rows_per_page = max(1, height - 2)
    fragments: Fragments = []

    if session.active_tab == Tab.USERS:
        fragments.append(("class:table.header", f" {'UID':>6}  {'NAME':<20} {'FULL NAME':<24} SHELL\n"))
        records, cursor, line = session.store.users, session.selected_user, _user_line
        focused = session.users_focus == UsersFocus.LIST
    else:
        fragments.append(("class:table.header", f" {'GID':>6}  {'NAME':<20} MEMBERS\n"))
        records, cursor, line = session.store.groups, session.selected_group, _group_line
        focused = True

    if not records:
        fragments.append(("class:dim", " (no records)\n"))
        return FormattedText(fragments)

    for i in _page(cursor, len(records), session.rows_per_page):
        _row(fragments, line(records[i]), selected=focused and i == cursor)
    return FormattedText(fragments)


def _shell_label(ctl: Controller, user: User) -> str:
    parts = []
    shells = ctl.shells()
    if shells:
        parts.append("valid" if user.shell in shells else "not in /etc/shells")
    parts.append("non-interactive" if user.has_inactive_shell else "interactive")
    return ", ".join(parts)


def _group_details(ctl: Controller, group: Group) -> FormattedText:
    threshold = ctl.system_id_threshold
    summary = summarize_group(group, ctl.session.store.users_all, threshold)
    fragments: Fragments = [("class:section", f" {group.name}\n")]
    fragments.append(("", f" GID       {group.gid} ({'system' if group.gid < threshold else 'user'})\n"))
    fragments.append(("", f" Sudo      {'yes' if group.name == ctl.sudo_group else 'no'}\n"))
    fragments.append(("", f" Primary   {summary.primary_members} account(s)\n"))
    fragments.append(("", f" Shells    interactive {summary.interactive}, non-interactive {summary.non_interactive}\n"))
    fragments.append(("", f" UID class system {summary.system_accounts}, user {summary.user_accounts}\n"))
    fragments.append((
        "",
        f" Accounts  locked {summary.locked}, no password {summary.no_password}, expired {summary.expired}\n",
    ))
    fragments.append(("", f" Orphans   {summary.orphans}\n"))
    fragments.append(("", f" Modified  {format_day(ctl.group_mtime())}\n"))
    fragments.append(("class:section", f" Members ({summary.secondary_members})\n"))
    for member in group.members or ["-"]:
        fragments.append(("", f"  {member}\n"))
    return FormattedText(fragments)


def render_details(ctl: Controller) -> FormattedText:
    session = ctl.session

    if session.active_tab == Tab.GROUPS:
        group = session.selected_group_record()
        if group is None:
            return FormattedText([("class:dim", " no group selected")])
        return _group_details(ctl, group)

    user = session.selected_user_record()
    if user is None:
        return FormattedText([("class:dim", " no user selected")])

    facts = ctl.user_facts(user)
    primary = session.store.find_group(user.primary_gid)
    member_of = session.member_of()
    flags = [
        name for name, on in (
            ("locked", user.password.locked),
            ("no password", user.password.no_password),
            ("expired", user.password.expired),
        ) if on
    ]
    if not user.home_exists:
        home_note = " (missing)"
    elif facts.home_mode is not None:
        home_note = f" ({facts.home_mode:04o})"
    else:
        home_note = ""

    fragments: Fragments = [("class:section", f" {user.name}\n")]
    fragments.append(("", f" UID       {user.uid}\n"))
    fragments.append(("", f" GID       {user.primary_gid} ({primary.name if primary else '-'})\n"))
    fragments.append(("", f" Name      {user.full_name or '-'}\n"))
    fragments.append(("", f" Home      {user.home_dir}{home_note}\n"))
    fragments.append(("", f" Shell     {user.shell} ({_shell_label(ctl, user)})\n"))
    fragments.append(("", f" Password  {', '.join(flags) or 'ok'}\n"))
    fragments.append(("", f" Changed   {format_day(user.password.last_change)}\n"))
    fragments.append(("", f" Expires   {format_day(user.password.expire)}\n"))
    fragments.append(("", f" Sudo      {'yes' if any(g.name == ctl.sudo_group for g in member_of) else 'no'}\n"))
    fragments.append(("", f" SSH keys  {facts.ssh_keys}\n"))
    fragments.append(("", f" Processes {facts.processes}\n"))

    focused = session.users_focus == UsersFocus.MEMBER_OF
    fragments.append(("class:section", f" Member of{' (focused)' if focused else ''}\n"))
    for i, g in enumerate(member_of):
        _row(fragments, f"  {g.name} ({g.gid})", selected=focused and i == session.selected_member_of)
    return FormattedText(fragments)


def render_keybinds(ctl: Controller) -> FormattedText:
    fragments: Fragments = [("class:section", " Keys\n")]
    for line in iter_help_lines(ctl.keymap):
        fragments.append(("class:dim", f" {line}\n"))
    return FormattedText(fragments)


# ============================================================================
# Modals
# ============================================================================

def render_modal(ctl: Controller) -> FormattedText:
    modal = ctl.session.modal
    if modal is None:
        return FormattedText([])
    fragments: Fragments = [("class:modal.title", f" {modal.title}\n\n")]

    if isinstance(modal, MenuModal):
        for i, item in enumerate(modal.items):
            _row(fragments, f"  {item}", selected=i == modal.selected)
    elif hasattr(modal, "picker"):
        _render_picker(ctl, modal, fragments)
    elif isinstance(modal, (UsernameInput, FullnameInput, GroupCreateInput, GroupRenameInput)):
        fragments.append(("class:input", f" > {modal.value}_\n"))
    elif isinstance(modal, ChangePasswordForm):
        _render_form(fragments, modal.selected, [
            f"Password: {_mask(modal.password)}",
            f"Confirm:  {_mask(modal.confirm)}",
            f"[{'x' if modal.must_change else ' '}] Must change at next login",
            "Submit",
        ])
    elif isinstance(modal, CreateUserForm):
        _render_form(fragments, modal.selected, [
            f"Name:     {modal.name}",
            f"Password: {_mask(modal.password)}",
            f"Confirm:  {_mask(modal.confirm)}",
            f"[{'x' if modal.create_home else ' '}] Create home directory",
            f"[{'x' if modal.add_to_sudo_group else ' '}] Add to {ctl.sudo_group}",
            "Create",
        ])
    elif isinstance(modal, DeleteUserConfirm):
        fragments.append(("", f" Delete user '{modal.username}'?\n"))
        fragments.append(("", f" [{'x' if modal.delete_home else ' '}] Also remove home (Space)\n\n"))
        _render_yes_no(fragments, modal.selected)
    elif isinstance(modal, GroupDeleteConfirm):
        group = ctl.session.store.find_group(modal.gid)
        fragments.append(("", f" Delete group '{group.name if group else modal.gid}'?\n\n"))
        _render_yes_no(fragments, modal.selected)
    elif isinstance(modal, CredentialPrompt):
        if modal.error:
            fragments.append(("class:error", f" {modal.error}\n"))
        fragments.append(("", " sudo password:\n"))
        fragments.append(("class:input", f" > {_mask(modal.secret)}_\n"))
    elif isinstance(modal, FilterMenu):
        _render_filter_menu(ctl, modal, fragments)
    elif isinstance(modal, HelpModal):
        lines = list(iter_help_lines(ctl.keymap))
        for line in lines[modal.scroll:]:
            fragments.append(("", f" {line}\n"))
    elif isinstance(modal, Info):
        fragments.append(("", f" {modal.message}\n"))

    fragments.append(("class:dim", "\n Enter: confirm  Esc: cancel  Backspace: back"))
    return FormattedText(fragments)


def _render_picker(ctl: Controller, modal: Modal, fragments: Fragments) -> None:
    names = ctl.candidates(modal)
    picker = modal.picker
    if not names:
        fragments.append(("class:dim", "  (nothing to choose)\n"))
        return
    for i in range(picker.offset, min(len(names), picker.offset + PICKER_ROWS)):
        mark = "[x]" if names[i] in picker.marked else "[ ]"
        _row(fragments, f"  {mark} {names[i]}", selected=i == picker.selected)
    fragments.append(("class:dim", f"  {picker.selected + 1}/{len(names)}  Space: mark\n"))


def _render_form(fragments: Fragments, selected: int, rows: List[str]) -> None:
    for i, text in enumerate(rows):
        _row(fragments, f"  {text}", selected=i == selected)


def _render_yes_no(fragments: Fragments, selected: int) -> None:
    yes = "class:row.selected" if selected == 0 else "class:row"
    no = "class:row.selected" if selected == 1 else "class:row"
    fragments.extend([("", "   "), (yes, " Yes "), ("", "   "), (no, " No "), ("", "\n")])


def _render_filter_menu(ctl: Controller, modal: FilterMenu, fragments: Fragments) -> None:
    draft = modal.draft
    t = ctl.system_id_threshold
    if ctl.session.active_tab == Tab.USERS:
        labels = ("Show all users", f"Only human users (UID >= {t})", f"Only system users (UID < {t})")
        for i, label in enumerate(labels):
            on = draft.users_filter == USER_FILTER_ROWS[i]
            _row(fragments, f"  ({'*' if on else ' '}) {label}", selected=i == modal.selected)
        for j, name in enumerate(CHIP_NAMES):
            row = len(USER_FILTER_ROWS) + j
            on = getattr(draft.chips, name)
            _row(fragments, f"  [{'x' if on else ' '}] {CHIP_LABELS[name]}", selected=row == modal.selected)
    else:
        labels = ("Show all groups", f"Only user groups (GID >= {t})", f"Only system groups (GID < {t})")
        for i, label in enumerate(labels):
            on = draft.groups_filter == GROUP_FILTER_ROWS[i]
            _row(fragments, f"  ({'*' if on else ' '}) {label}", selected=i == modal.selected)
