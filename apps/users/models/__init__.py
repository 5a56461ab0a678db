# users/models/__init__.py
from .base import CustomUser
from .blocked_user import BlockedUser

__all__ = [
    "CustomUser",
    "BlockedUser",
]
