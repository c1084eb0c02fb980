"""
tui_console.py — Full-screen account console using prompt_toolkit.

Layout:
    ┌──────────────────────────────────────────────────────┐
    │ usrgrp  [Users]  Groups        signed in as alice    │  ← Header
    ├────────────────────────────────┬─────────────────────┤
    │    UID  NAME        ...        │ alice               │
    │   1000  alice       ...        │ UID  1000           │  ← Table | details
    │   1001  bob         ...        │ Member of ...       │
    ├────────────────────────────────┴─────────────────────┤
    │ Enter: actions  /: search ...     users 2/3 groups 4 │  ← Status bar
    └──────────────────────────────────────────────────────┘

Features:
- Every key press goes to the Controller; Ctrl+C always quits
- Modal workflows drawn in a floating frame
- Page size follows the terminal height
- 100ms refresh so the frame stays current without input
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from prompt_toolkit import Application
from prompt_toolkit.filters import Condition
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.input import Input
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import (
    ConditionalContainer,
    Float,
    FloatContainer,
    FormattedTextControl,
    HSplit,
    Layout,
    VSplit,
    Window,
)
from prompt_toolkit.layout.dimension import Dimension
from prompt_toolkit.output import Output
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import Frame

from usrgrp.console import render
from usrgrp.session.controller import Controller

logger = logging.getLogger("usrgrp.console")

# Lines used by header, separators and status bar
CHROME_LINES = 4


# ============================================================================
# Style
# ============================================================================

STYLE = Style.from_dict({
    "title": "#1e1e2e bg:#89b4fa bold",
    "tab": "#a6adc8",
    "tab.active": "#1e1e2e bg:#a6e3a1 bold",
    "table.header": "#f9e2af bold",
    "row": "#cdd6f4",
    "row.selected": "#1e1e2e bg:#89b4fa",
    "section": "#f5c2e7 bold",
    "separator": "#444444",
    "modal.title": "#89b4fa bold",
    "error": "#f38ba8 bold",
    "input": "#ffffff",
    "prompt": "#a6e3a1 bold",
    "dim": "#6c7086",
})


# ============================================================================
# Console
# ============================================================================

class ManagerConsole:
    """Full-screen console driving a Controller."""

    def __init__(
        self,
        controller: Controller,
        input: Optional[Input] = None,
        output: Optional[Output] = None,
    ):
        self.controller = controller
        self.session = controller.session
        self._build_ui(input, output)

    def _build_ui(self, input: Optional[Input], output: Optional[Output]):
        """Build the prompt_toolkit layout."""

        kb = KeyBindings()

        # Both eager: the built-in ignore bindings for tab, enter, arrows
        # etc. would otherwise outrank Keys.Any
        @kb.add("c-c", eager=True)
        def handle_ctrl_c(event):
            """Handle Ctrl+C - quit."""
            self.session.running = False
            event.app.exit()

        @kb.add(Keys.Any, eager=True)
        def handle_any(event):
            """Everything else goes to the controller."""
            key = event.key_sequence[0].key
            name = key.value if isinstance(key, Keys) else key
            try:
                self.controller.handle_key(name)
            except Exception:
                # Keep the console alive; the log has the details
                logger.exception(f"Key {name!r} failed")
            if not self.session.running:
                event.app.exit()

        header = Window(
            content=FormattedTextControl(text=lambda: render.render_header(self.session)),
            height=1,
        )

        table = Window(
            content=FormattedTextControl(text=self._table_text),
            width=Dimension(weight=3),
        )
        details = Window(
            content=FormattedTextControl(text=lambda: render.render_details(self.controller)),
            width=Dimension(weight=2),
        )
        keybinds = ConditionalContainer(
            Window(
                content=FormattedTextControl(text=lambda: render.render_keybinds(self.controller)),
                width=Dimension(weight=2),
            ),
            filter=Condition(lambda: self.session.show_keybinds),
        )

        def separator():
            return FormattedText([("class:separator", "─" * 200)])

        status = Window(
            content=FormattedTextControl(text=lambda: render.render_status(self.session)),
            height=1,
        )

        body = HSplit([
            header,
            Window(content=FormattedTextControl(text=separator), height=1),
            VSplit([table, Window(width=1, char="│", style="class:separator"), details, keybinds]),
            Window(content=FormattedTextControl(text=separator), height=1),
            status,
        ])

        modal = ConditionalContainer(
            Frame(
                Window(
                    content=FormattedTextControl(text=lambda: render.render_modal(self.controller)),
                    width=Dimension(min=40, preferred=60),
                ),
            ),
            filter=Condition(lambda: self.session.modal is not None),
        )

        root = FloatContainer(content=body, floats=[Float(content=modal)])
        self.layout = Layout(root)

        self.app = Application(
            layout=self.layout,
            key_bindings=kb,
            style=STYLE,
            full_screen=True,
            mouse_support=False,
            input=input,
            output=output,
        )
        # Seconds to wait for the rest of an escape sequence
        self.app.ttimeoutlen = 0.05

    def _table_text(self):
        rows = self.app.output.get_size().rows
        return render.render_table(self.session, rows - CHROME_LINES)

    async def run(self):
        """Run the console until Quit."""
        self.session.running = True

        async def refresh_loop():
            while self.session.running:
                await asyncio.sleep(0.1)  # 100ms refresh rate
                if self.app.is_running:
                    self.app.invalidate()

        refresh_task = asyncio.create_task(refresh_loop())
        try:
            await self.app.run_async()
        finally:
            self.session.running = False
            refresh_task.cancel()
            try:
                await refresh_task
            except asyncio.CancelledError:
                pass


def create_manager_console(controller: Controller, **kwargs) -> ManagerConsole:
    """Factory function to create the console."""
    return ManagerConsole(controller, **kwargs)
