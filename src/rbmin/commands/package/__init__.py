"""Package management commands"""

from .install_command import install
from .remove_command import remove
from .list_command import list_packages
from .update_command import update
from .search_command import search

__all__ = ["install", "remove", "list_packages", "update", "search"]
