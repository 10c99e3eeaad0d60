"""Style definitions for consistent UI appearance"""

from rich.style import Style
from enum import Enum
from dataclasses import dataclass


@dataclass
class PanelConfig:
    """Standard panel configuration"""

    title_align: str = "left"
    border_style: str = "blue"
    padding: tuple = (1, 2)


@dataclass
class TableConfig:
    """Standard table configuration"""

    title_justify: str = "left"
    show_header: bool = True
    header_style: str = "bold magenta"
    expand: bool = False
    padding: tuple = (0, 1)


class StyleType(Enum):
    """Style definitions that can be used directly without .value"""

    # Status styles
    SUCCESS = Style(color="green", bold=True)
    ERROR = Style(color="red", bold=True)
    WARNING = Style(color="yellow")
    INFO = Style(color="blue")

    # Outcome styles
    INSTALLED = Style(color="green")
    REPLACED = Style(color="cyan")
    PRESENT = Style(dim=True)
    FAILED = Style(color="red")
    REMOVED = Style(color="yellow")
    NOT_FOUND = Style(color="red")

    # Package related styles
    PACKAGE_NAME = Style(color="cyan")
    PACKAGE_VERSION = Style(color="bright_black")
    INTERPRETER = Style(color="magenta")

    # Environment related styles
    ENV_ACTIVE = Style(color="green", bold=True)
    ENV_NAME = Style(color="green")
    ENV_PATH = Style(color="bright_black")

    # Other styles
    DIM = Style(dim=True)
    COMMAND = Style(color="cyan")

    def __call__(self):
        return self.value


class SymbolType(str, Enum):
    SUCCESS = "✓"
    ERROR = "✗"
    WARNING = "⚠"
    INFO = "ℹ"
    # Outcome symbols
    INSTALLED = "✓"
    REPLACED = "↑"
    PRESENT = "="
    FAILED = "✗"
    REMOVED = "−"
    NOT_FOUND = "?"
    ARROW = "→"
    BULLET = "•"

    def __format__(self, format_spec):
        return str(self.value)


def get_status_symbol(status: str) -> str:
    """Get status symbol for given status"""
    try:
        return SymbolType[status.upper()]
    except KeyError:
        return SymbolType.INFO


def get_style(style_name: str) -> Style:
    """Get style for given style name"""
    try:
        return StyleType[style_name.upper()].value
    except KeyError:
        return Style()


# Default configurations
DEFAULT_PANEL = PanelConfig()
DEFAULT_TABLE = TableConfig()
