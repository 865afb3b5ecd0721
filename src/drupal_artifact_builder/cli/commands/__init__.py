"""CLI command handlers."""

from .build import cmd_build
from .create import cmd_create
from .sync import cmd_sync

__all__ = [
    "cmd_build",
    "cmd_create",
    "cmd_sync",
]
