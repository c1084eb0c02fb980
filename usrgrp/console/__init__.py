"""
console — Full-screen terminal interface for the account manager.

Renders the session with prompt_toolkit and feeds every key press to the
controller.
"""

from usrgrp.console.tui_console import ManagerConsole, create_manager_console

__all__ = ["ManagerConsole", "create_manager_console"]
