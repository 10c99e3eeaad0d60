"""Command implementations for the CLI interface"""

from .package import install, remove, list_packages, update, search
from .env import env, export
from .index_command import refresh

__all__ = [
    "install",
    "remove",
    "list_packages",
    "update",
    "search",
    "env",
    "export",
    "refresh",
]
