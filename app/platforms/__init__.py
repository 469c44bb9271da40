from .adapter import GenericAdapter, PlatformAdapter
from .base import PlatformDescriptor, PlatformFetchError
from .registry import AdapterRegistry

__all__ = [
    "AdapterRegistry",
    "GenericAdapter",
    "PlatformAdapter",
    "PlatformDescriptor",
    "PlatformFetchError",
]
