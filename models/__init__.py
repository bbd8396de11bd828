# models/__init__.py

from .access import AccessIn, AccessRecordOut
from .user import User, UserIn, StatusUpdateIn, USER_STATUSES, DEFAULT_STATUS

__all__ = [
    "AccessIn",
    "AccessRecordOut",
    "User",
    "UserIn",
    "StatusUpdateIn",
    "USER_STATUSES",
    "DEFAULT_STATUS",
]
