"""
User and group records: models, system source, store and search.
"""

from usrgrp.records.models import Group, PasswordStatus, User, groups_of_user

__all__ = ["Group", "PasswordStatus", "User", "groups_of_user"]
