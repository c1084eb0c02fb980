"""
Privileged account mutations: pending action models, sudo adapter, coordinator.
"""

from usrgrp.privileged.adapter import (
    AUTH_REQUIRED,
    AuthenticationRequired,
    CommandRunner,
    PrivilegedError,
    SystemAdapter,
)
from usrgrp.privileged.coordinator import Coordinator, Failure, Outcome, Success

__all__ = [
    "AUTH_REQUIRED",
    "AuthenticationRequired",
    "CommandRunner",
    "Coordinator",
    "Failure",
    "Outcome",
    "PrivilegedError",
    "Success",
    "SystemAdapter",
]
