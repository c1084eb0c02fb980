"""
common.py — Navigation helpers shared by every workflow, plus the shared
modals (filters, help, credential prompt, info).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from usrgrp.config.filters import CHIP_NAMES, GroupsFilter, UsersFilter
from usrgrp.config.keymap import Action, KeyEvent
from usrgrp.session.modals import (
    PAGE_STEP,
    CredentialPrompt,
    FilterMenu,
    HelpModal,
    Info,
    ListPicker,
    MenuModal,
)
from usrgrp.session.state import Tab

if TYPE_CHECKING:
    from usrgrp.session.controller import Controller


# ============================================================================
# Helpers
# ============================================================================

def menu_move(modal: MenuModal, event: KeyEvent) -> bool:
    """Move a menu cursor. Returns True when the event was a movement."""
    last = len(modal.items) - 1
    if event.action == Action.MOVE_UP:
        modal.selected = max(0, modal.selected - 1)
    elif event.action == Action.MOVE_DOWN:
        modal.selected = min(last, modal.selected + 1)
    else:
        return False
    return True


def picker_move(picker: ListPicker, event: KeyEvent, count: int) -> bool:
    # Candidates can shrink between key presses after a re-list
    picker.clamp(count)
    steps = {
        Action.MOVE_UP: -1,
        Action.MOVE_DOWN: 1,
        Action.PAGE_UP: -PAGE_STEP,
        Action.PAGE_DOWN: PAGE_STEP,
    }
    delta = steps.get(event.action)
    if delta is None:
        return False
    picker.move(delta, count)
    return True


def chosen(picker: ListPicker, names: List[str]) -> List[str]:
    """Marked names in candidate order, or the highlighted one."""
    if picker.marked:
        return [n for n in names if n in picker.marked]
    return [names[picker.selected]]


def edit_text(value: str, event: KeyEvent) -> Optional[str]:
    """Apply a printable char or Backspace to `value`; None if neither."""
    if event.action == Action.BACK:
        return value[:-1]
    if event.char:
        return value + event.char
    return None


def toggle_choice(selected: int, event: KeyEvent) -> int:
    """Yes/No dialogs: 0 is Yes, 1 is No."""
    if event.action in (Action.MOVE_LEFT_PAGE, Action.MOVE_RIGHT_PAGE):
        return 1 - selected
    return selected


# ============================================================================
# Info / Help
# ============================================================================

def on_info(ctl: Controller, modal: Info, event: KeyEvent) -> None:
    if event.action in (Action.CONFIRM, Action.BACK):
        ctl.session.close_modal()


def on_help(ctl: Controller, modal: HelpModal, event: KeyEvent) -> None:
    if event.action == Action.MOVE_UP:
        modal.scroll = max(0, modal.scroll - 1)
    elif event.action == Action.MOVE_DOWN:
        modal.scroll += 1
    elif event.action == Action.PAGE_UP:
        modal.scroll = max(0, modal.scroll - PAGE_STEP)
    elif event.action == Action.PAGE_DOWN:
        modal.scroll += PAGE_STEP
    elif event.action in (Action.CONFIRM, Action.BACK):
        ctl.session.close_modal()


# ============================================================================
# Filter menu
# ============================================================================

USER_FILTER_ROWS = (UsersFilter.NONE, UsersFilter.HUMAN, UsersFilter.SYSTEM)
GROUP_FILTER_ROWS = (GroupsFilter.NONE, GroupsFilter.USER, GroupsFilter.SYSTEM)


def filter_row_count(tab: Tab) -> int:
    if tab == Tab.USERS:
        return len(USER_FILTER_ROWS) + len(CHIP_NAMES)
    return len(GROUP_FILTER_ROWS)


def on_filter_menu(ctl: Controller, modal: FilterMenu, event: KeyEvent) -> None:
    s = ctl.session
    tab = s.active_tab
    rows = filter_row_count(tab)
    draft = modal.draft

    if event.action == Action.MOVE_UP:
        modal.selected = max(0, modal.selected - 1)
    elif event.action == Action.MOVE_DOWN:
        modal.selected = min(rows - 1, modal.selected + 1)
    elif event.action in (Action.TOGGLE, Action.CONFIRM):
        row = modal.selected
        if tab == Tab.USERS and row >= len(USER_FILTER_ROWS):
            if event.action == Action.TOGGLE:
                draft.chips.toggle(CHIP_NAMES[row - len(USER_FILTER_ROWS)])
        elif tab == Tab.USERS:
            draft.users_filter = USER_FILTER_ROWS[row]
        else:
            draft.groups_filter = GROUP_FILTER_ROWS[row]

        if event.action == Action.CONFIRM:
            s.filters = draft
            ctl.save_filters()
            s.close_modal()
            ctl.apply_filters()


# ============================================================================
# Credential prompt
# ============================================================================

def on_credential_prompt(ctl: Controller, modal: CredentialPrompt, event: KeyEvent) -> None:
    if event.action == Action.CONFIRM:
        ctl.submit(modal.pending, typed_secret=modal.secret)
        return
    if event.action == Action.BACK and not modal.secret:
        ctl.session.close_modal()
        return
    value = edit_text(modal.secret, event)
    if value is not None:
        modal.secret = value
