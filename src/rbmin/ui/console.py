"""Console output handling with consistent styling"""

from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.installer import Outcome, Status
from ..core.package import PackageSpec
from .style import (
    DEFAULT_PANEL,
    DEFAULT_TABLE,
    StyleType,
    SymbolType,
    get_status_symbol,
    get_style,
)

console = Console(force_terminal=True, color_system="auto")


def print_error(message: str, details: Optional[str] = None):
    """Display error message"""
    console.print(Text(f"{SymbolType.ERROR} {message}", style=StyleType.ERROR()))
    if details:
        console.print(Text(details, style=StyleType.DIM()))


def print_warning(message: str):
    """Display warning message"""
    console.print(f"{SymbolType.WARNING} {message}", style=StyleType.WARNING())


def print_success(message: str):
    """Display success message"""
    console.print(f"{SymbolType.SUCCESS} {message}", style=StyleType.SUCCESS())


def print_info(message: str):
    """Display info message"""
    console.print(f"{SymbolType.INFO} {message}", style=StyleType.INFO())


@contextmanager
def progress_status(message: str):
    """Show a spinner while a long operation runs"""
    with console.status(f"[blue]{message}[/blue]") as status:
        yield status


def print_tips(tips: List[str]) -> None:
    """Display a list of follow-up hints"""
    console.print("[dim]Tips:[/dim]")
    for tip in tips:
        console.print(f"[dim]{SymbolType.BULLET} {tip}[/dim]")


_OUTCOME_VERBS = {
    Status.INSTALLED: "Installed",
    Status.REPLACED: "Replaced",
    Status.PRESENT: "Already present",
    Status.FAILED: "Failed",
    Status.REMOVED: "Removed",
    Status.NOT_FOUND: "Not found",
}


def format_outcome(outcome: Outcome) -> Text:
    """One line describing an install/remove outcome"""
    status = outcome.status.value
    text = Text()
    text.append(f"{get_status_symbol(status)} ", style=get_style(status))
    text.append(_OUTCOME_VERBS[outcome.status], style=get_style(status))
    text.append(" ")
    text.append(str(outcome.package), style=StyleType.PACKAGE_NAME())
    if outcome.interpreter:
        text.append(" for ")
        text.append(outcome.interpreter, style=StyleType.INTERPRETER())
    if outcome.previous:
        text.append(f" (was {outcome.previous.version})", style=StyleType.DIM())
    if outcome.message and outcome.status in (Status.FAILED, Status.NOT_FOUND):
        text.append(f": {outcome.message}")
    return text


def print_outcomes(outcomes: Iterable[Outcome], verbose: bool = False) -> None:
    """Display outcomes, with captured build output when verbose"""
    for outcome in outcomes:
        console.print(format_outcome(outcome))
        if outcome.details and (verbose or outcome.status == Status.NOT_FOUND):
            console.print(Text(outcome.details, style=StyleType.DIM()))


def create_package_table(
    title: str, installed: Dict[str, List[PackageSpec]]
) -> Table:
    """Create installed package table, one column per interpreter"""
    table = Table(
        title=title,
        show_header=DEFAULT_TABLE.show_header,
        header_style=DEFAULT_TABLE.header_style,
        title_justify=DEFAULT_TABLE.title_justify,
        expand=DEFAULT_TABLE.expand,
        padding=DEFAULT_TABLE.padding,
    )
    table.add_column("Package", style=StyleType.PACKAGE_NAME())
    for interpreter in installed:
        table.add_column(interpreter, style=StyleType.PACKAGE_VERSION())

    names: List[str] = []
    for specs in installed.values():
        for spec in specs:
            if spec.name not in names:
                names.append(spec.name)

    for name in sorted(names):
        row = [name]
        for specs in installed.values():
            version = next(
                (spec.version for spec in specs if spec.name == name), None
            )
            row.append(version or "-")
        table.add_row(*row)
    return table


def create_search_table(matches: Dict[str, List[str]]) -> Table:
    """Create search result table"""
    table = Table(
        title="Search Results",
        show_header=DEFAULT_TABLE.show_header,
        header_style=DEFAULT_TABLE.header_style,
        title_justify=DEFAULT_TABLE.title_justify,
        expand=DEFAULT_TABLE.expand,
        padding=DEFAULT_TABLE.padding,
    )
    table.add_column("Package", style=StyleType.PACKAGE_NAME())
    table.add_column("Versions", style=StyleType.PACKAGE_VERSION())
    for name, versions in matches.items():
        table.add_row(name, ", ".join(versions))
    return table


def create_summary_panel(title: str, content) -> Panel:
    """Create summary panel with consistent styling"""
    return Panel.fit(
        content,
        title=title,
        title_align=DEFAULT_PANEL.title_align,
        border_style=DEFAULT_PANEL.border_style,
        padding=DEFAULT_PANEL.padding,
    )


def print_table(table: Table) -> None:
    """Print table with consistent padding"""
    console.print()
    console.print(table)
    console.print()
