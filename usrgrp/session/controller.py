"""
controller.py — Routes key presses into the session and runs pending actions.

Features:
- Normal-mode navigation (tabs, cursors, paging, focus)
- Incremental search editing
- Modal dispatch to the workflow handlers in usrgrp.session.flows
- submit(): one coordinator call per operator confirmation, outcome fed back
  as Info or CredentialPrompt
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from usrgrp.config.filters import FilterStore
from usrgrp.config.keymap import Action, KeyEvent, Keymap, normalize_key
from usrgrp.config.settings import AppConfig
from usrgrp.privileged.adapter import SystemAdapter
from usrgrp.privileged.coordinator import Coordinator, Outcome, Success
from usrgrp.privileged.models import GROUPS, USERS, PendingBase
from usrgrp.records.hostinfo import PROC_ROOT, UserFacts, collect_user_facts
from usrgrp.records.models import User, groups_of_user
from usrgrp.records.search import SYSTEM_ID_THRESHOLD, filter_groups, filter_users
from usrgrp.records.source import RecordSourceError, SystemRecordSource
from usrgrp.records.store import RecordSource
from usrgrp.session import flows
from usrgrp.session.modals import (
    CreateUserForm,
    CredentialPrompt,
    FilterMenu,
    GroupActions,
    GroupCreateInput,
    GroupDeleteConfirm,
    HelpModal,
    Info,
    Modal,
    PickerSource,
    UserActions,
)
from usrgrp.session.state import InputMode, Session, Tab, UsersFocus

logger = logging.getLogger("usrgrp.session")

# Seconds a collected UserFacts is reused before re-reading the system
FACTS_TTL = 2.0


class Controller:
    """Owns the session and its collaborators; every transition goes through here."""

    def __init__(
        self,
        session: Session,
        source: RecordSource,
        coordinator: Coordinator,
        keymap: Optional[Keymap] = None,
        filter_store: Optional[FilterStore] = None,
        regular_uid_range: tuple = (1000, 1999),
        system_id_threshold: int = SYSTEM_ID_THRESHOLD,
        sudo_group: str = "wheel",
    ):
        self.session = session
        self.source = source
        self.coordinator = coordinator
        self.keymap = keymap or Keymap()
        self.filter_store = filter_store
        self.regular_uid_range = regular_uid_range
        self.system_id_threshold = system_id_threshold
        self.sudo_group = sudo_group
        self.proc_root: Path = PROC_ROOT
        self._facts: Dict[str, Tuple[float, UserFacts]] = {}

    @classmethod
    def from_config(cls, config: AppConfig) -> Controller:
        filter_store = FilterStore(config.filters_path)
        session = Session(
            filters=filter_store.load(),
            credential_timeout=config.credential_timeout,
        )
        adapter = SystemAdapter(sudo_group=config.sudo_group)
        return cls(
            session=session,
            source=SystemRecordSource(config.paths),
            coordinator=Coordinator(adapter),
            keymap=Keymap.load_or_init(config.keybinds_path),
            filter_store=filter_store,
            regular_uid_range=(config.regular_uid_min, config.regular_uid_max),
            system_id_threshold=config.system_id_threshold,
            sudo_group=config.sudo_group,
        )

    def start(self) -> None:
        self.session.store.reload(self.source)
        self.apply_filters()
        logger.info(
            f"Loaded {len(self.session.store.users_all)} users, "
            f"{len(self.session.store.groups_all)} groups"
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def apply_filters(self) -> None:
        s = self.session
        store = s.store
        user_query = s.search_query if s.input_mode == InputMode.SEARCH_USERS else None
        group_query = s.search_query if s.input_mode == InputMode.SEARCH_GROUPS else None

        store.users = filter_users(store.users_all, s.filters, user_query, self.system_id_threshold)
        store.groups = filter_groups(store.groups_all, s.filters, group_query, self.system_id_threshold)
        s.selected_user = 0
        s.selected_group = 0
        s.selected_member_of = 0

    def refresh(self, kinds: Iterable[str]) -> None:
        kinds = set(kinds)
        self._facts.clear()
        if USERS in kinds:
            self.session.store.reload_users(self.source)
        if GROUPS in kinds:
            self.session.store.reload_groups(self.source)
        self.apply_filters()

    def save_filters(self) -> None:
        if self.filter_store is not None:
            self.filter_store.save(self.session.filters)

    # ------------------------------------------------------------------
    # Privileged execution
    # ------------------------------------------------------------------

    def submit(self, pending: PendingBase, typed_secret: Optional[str] = None) -> Outcome:
        """
        Execute `pending` once.

        `typed_secret` comes from the credential prompt; otherwise the cached
        credential is used. Success shows Info and re-lists the affected
        records; any failure lands in the credential prompt with the reason.
        """
        s = self.session
        credential = typed_secret if typed_secret is not None else s.current_credential()
        outcome = self.coordinator.execute(pending, credential)

        if isinstance(outcome, Success):
            if typed_secret is not None:
                s.remember_credential(typed_secret)
            self.refresh(pending.refreshes)
            s.open_modal(Info(outcome.message))
            return outcome

        if typed_secret is not None and outcome.credential_accepted:
            s.remember_credential(typed_secret)
        elif outcome.auth_required and typed_secret is None:
            # The cached secret (if any) no longer works
            s.credential = None
        s.open_modal(CredentialPrompt(pending, secret="", error=outcome.reason))
        return outcome

    # ------------------------------------------------------------------
    # Candidate lists for pickers
    # ------------------------------------------------------------------

    def candidates(self, modal: Modal) -> List[str]:
        store = self.session.store
        source = modal.picker.source
        if source == PickerSource.ALL_GROUPS:
            return [g.name for g in store.groups_all]
        if source == PickerSource.ALL_USERS:
            return [u.name for u in store.users_all]
        if source == PickerSource.USER_GROUPS:
            user = store.find_user(modal.username)
            if user is None:
                return []
            return [g.name for g in groups_of_user(user, store.groups_all)]
        if source == PickerSource.GROUP_MEMBERS:
            group = store.find_group(modal.gid)
            return list(group.members) if group else []
        if source == PickerSource.SHELLS:
            return self.shells()
        return []

    def shells(self) -> List[str]:
        try:
            return self.source.list_shells()
        except RecordSourceError as e:
            logger.warning(f"Shell listing failed: {e}")
            return []

    # ------------------------------------------------------------------
    # Details pane facts
    # ------------------------------------------------------------------

    def user_facts(self, user: User) -> UserFacts:
        now = time.monotonic()
        cached = self._facts.get(user.name)
        if cached is not None and now - cached[0] < FACTS_TTL:
            return cached[1]
        facts = collect_user_facts(user.home_dir, user.uid, self.proc_root)
        self._facts[user.name] = (now, facts)
        return facts

    def group_mtime(self) -> Optional[int]:
        return self.source.group_mtime()

    # ------------------------------------------------------------------
    # Key handling
    # ------------------------------------------------------------------

    def handle_key(self, key: str) -> None:
        key = normalize_key(key)
        mode = self.session.input_mode
        if mode == InputMode.MODAL:
            flows.dispatch(self, KeyEvent(key, Keymap.resolve_modal(key)))
        elif mode in (InputMode.SEARCH_USERS, InputMode.SEARCH_GROUPS):
            self._handle_search(KeyEvent(key, Keymap.resolve_modal(key)))
        else:
            self._handle_normal(KeyEvent(key, self.keymap.resolve(key)))

    def _handle_search(self, event: KeyEvent) -> None:
        s = self.session
        if event.action == Action.CONFIRM:
            self.apply_filters()
            s.input_mode = InputMode.NORMAL
        elif event.action == Action.CANCEL:
            s.input_mode = InputMode.NORMAL
            s.search_query = ""
            self.apply_filters()
        elif event.action == Action.BACK:
            s.search_query = s.search_query[:-1]
            self.apply_filters()
        elif event.char:
            s.search_query += event.char
            self.apply_filters()

    def _handle_normal(self, event: KeyEvent) -> None:
        action = event.action
        if action is None or action == Action.IGNORE:
            return
        handler = getattr(self, f"_on_{action.name.lower()}", None)
        if handler is not None:
            handler()

    # ------------------------------------------------------------------
    # Normal-mode actions
    # ------------------------------------------------------------------

    def _on_quit(self) -> None:
        self.session.running = False

    def _on_switch_tab(self) -> None:
        s = self.session
        s.active_tab = Tab.GROUPS if s.active_tab == Tab.USERS else Tab.USERS

    def _on_toggle_users_focus(self) -> None:
        s = self.session
        if s.active_tab != Tab.USERS:
            return
        s.users_focus = UsersFocus.MEMBER_OF if s.users_focus == UsersFocus.LIST else UsersFocus.LIST
        s.selected_member_of = 0

    def _on_toggle_keybinds_pane(self) -> None:
        self.session.show_keybinds = not self.session.show_keybinds

    def _on_open_help(self) -> None:
        self.session.open_modal(HelpModal())

    def _on_open_filter_menu(self) -> None:
        self.session.open_modal(FilterMenu(draft=self.session.filters.copy()))

    def _on_start_search(self) -> None:
        s = self.session
        s.search_query = ""
        s.input_mode = InputMode.SEARCH_USERS if s.active_tab == Tab.USERS else InputMode.SEARCH_GROUPS
        self.apply_filters()

    def _on_new_user(self) -> None:
        if self.session.active_tab == Tab.USERS:
            self.session.open_modal(CreateUserForm())
        else:
            self.session.open_modal(GroupCreateInput())

    def _on_enter_action(self) -> None:
        s = self.session
        if s.active_tab == Tab.GROUPS:
            group = s.selected_group_record()
            if group is not None:
                s.open_modal(GroupActions(gid=group.gid))
            return

        user = s.selected_user_record()
        if user is None:
            return
        if s.users_focus == UsersFocus.MEMBER_OF:
            groups = s.member_of()
            if 0 <= s.selected_member_of < len(groups):
                s.open_modal(GroupActions(gid=groups[s.selected_member_of].gid))
        else:
            s.open_modal(UserActions(username=user.name))

    def _on_delete_selection(self) -> None:
        s = self.session
        if s.active_tab == Tab.USERS:
            user = s.selected_user_record()
            if user is not None and s.users_focus == UsersFocus.LIST:
                flows.users.open_delete(self, user)
        else:
            group = s.selected_group_record()
            if group is not None:
                s.open_modal(GroupDeleteConfirm(gid=group.gid))

    def _on_move_up(self) -> None:
        self._move(-1, wrap=True)

    def _on_move_down(self) -> None:
        self._move(1, wrap=True)

    def _on_move_left_page(self) -> None:
        self._move(-max(1, self.session.rows_per_page))

    def _on_move_right_page(self) -> None:
        self._move(max(1, self.session.rows_per_page))

    _on_page_up = _on_move_left_page
    _on_page_down = _on_move_right_page

    def _move(self, delta: int, wrap: bool = False) -> None:
        s = self.session
        if s.active_tab == Tab.GROUPS:
            attr, length = "selected_group", len(s.store.groups)
        elif s.users_focus == UsersFocus.MEMBER_OF:
            attr, length = "selected_member_of", len(s.member_of())
        else:
            attr, length = "selected_user", len(s.store.users)

        if length == 0:
            setattr(s, attr, 0)
            return
        index = getattr(s, attr) + delta
        if wrap:
            index %= length
        else:
            index = max(0, min(index, length - 1))
        setattr(s, attr, index)
        if attr == "selected_user":
            s.selected_member_of = 0
