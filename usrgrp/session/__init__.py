"""
Session state, modal workflow states and the controller that drives them.
"""

from usrgrp.session.state import CachedCredential, InputMode, Session, Tab, UsersFocus
from usrgrp.session.controller import Controller

__all__ = [
    "CachedCredential",
    "Controller",
    "InputMode",
    "Session",
    "Tab",
    "UsersFocus",
]
