"""Environment commands"""

from .env_command import env
from .export_command import export

__all__ = ["env", "export"]
