"""
usrgrp — Keyboard-driven console for local users and groups.
"""

__version__ = "0.1.0"
