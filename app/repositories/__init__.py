from .platform_repository import PlatformRepository, StorageError
from .user_repository import UserRepository

__all__ = [
    "PlatformRepository",
    "StorageError",
    "UserRepository",
]
