"""
test_pickers.py — Tests for list picker cursor and scroll behaviour
"""

import pytest

from usrgrp.session.modals import PAGE_STEP, PICKER_ROWS, AddMembersPicker, ListPicker, PickerSource

from conftest import press


class TestListPicker:

    def test_page_down_on_last_page_lands_on_last(self):
        picker = ListPicker(PickerSource.ALL_GROUPS, selected=20)
        picker.move(PAGE_STEP, 25)
        assert picker.selected == 24

    def test_page_up_stops_at_zero(self):
        picker = ListPicker(PickerSource.ALL_GROUPS, selected=3)
        picker.move(-PAGE_STEP, 25)
        assert picker.selected == 0

    def test_window_follows_cursor(self):
        picker = ListPicker(PickerSource.ALL_GROUPS)
        picker.move(PICKER_ROWS, 30)
        assert picker.selected == PICKER_ROWS
        assert picker.offset == 1

        picker.move(-PICKER_ROWS, 30)
        assert picker.selected == 0
        assert picker.offset == 0

    def test_empty_list(self):
        picker = ListPicker(PickerSource.ALL_GROUPS, selected=4, offset=2)
        picker.move(1, 0)
        assert (picker.selected, picker.offset) == (0, 0)

    @pytest.mark.parametrize("start,count,expected", [(7, 3, 2), (1, 3, 1), (-2, 3, 0)])
    def test_clamp(self, start, count, expected):
        picker = ListPicker(PickerSource.SHELLS, selected=start)
        picker.clamp(count)
        assert picker.selected == expected

    def test_toggle_mark(self):
        picker = ListPicker(PickerSource.ALL_USERS)
        picker.toggle_mark("alice")
        picker.toggle_mark("bob")
        picker.toggle_mark("alice")
        assert picker.marked == {"bob"}


class TestPickerKeys:
    """Picker navigation through the controller."""

    def _open_add_members(self, make_controller):
        ctl, source, adapter = make_controller()
        ctl.session.open_modal(AddMembersPicker(gid=1500))
        return ctl, adapter

    def test_page_keys_clamp(self, make_controller):
        ctl, _ = self._open_add_members(make_controller)
        picker = ctl.session.modal.picker

        press(ctl, "pagedown")
        assert picker.selected == 5  # six users, last index
        press(ctl, "down")
        assert picker.selected == 5
        press(ctl, "pageup")
        assert picker.selected == 0
        press(ctl, "up")
        assert picker.selected == 0

    def test_vi_keys_move(self, make_controller):
        ctl, _ = self._open_add_members(make_controller)
        press(ctl, "j", "j", "k")
        assert ctl.session.modal.picker.selected == 1

    def test_enter_submits_highlighted(self, make_controller):
        ctl, adapter = self._open_add_members(make_controller)
        press(ctl, "pagedown", "enter")
        assert adapter.calls == [("add_user_to_group", "svc", "dev")]
        assert ctl.session.modal.message == "Added selected users to 'dev'"
