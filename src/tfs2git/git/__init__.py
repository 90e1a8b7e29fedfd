"""Git integration for writing the migrated history."""

from .repository import GitTarget

__all__ = [
    "GitTarget",
]
