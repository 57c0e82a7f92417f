#app/models/enums.py
from __future__ import annotations
from enum import Enum


class GlobalRole(str, Enum):
    standard = "standard"
    global_admin = "global_admin"


class ProgramRole(str, Enum):
    admin = "admin"
    logger = "logger"
    member = "member"


class MembershipStatus(str, Enum):
    active = "active"
    left = "left"
    removed = "removed"


class InviteStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class NotificationType(str, Enum):
    PROGRAM_DELETED = "program.deleted"
    PROGRAM_ROLE_CHANGED = "program.role_changed"
    PROGRAM_ADMIN_TRANSFERRED = "program.admin_transferred"
    PROGRAM_MEMBER_LEFT = "program.member_left"
    PROGRAM_MEMBER_REMOVED = "program.member_removed"
