"""Search the gem index command"""

import click
from packaging.version import InvalidVersion, Version
from typing import List

from ..context import AppContext, handle_errors, pass_app
from ...ui.console import (
    create_search_table,
    print_table,
    print_warning,
    progress_status,
)


def _newest_first(versions: List[str]) -> List[str]:
    """Order versions newest first; unparseable ones go last"""

    def key(version: str):
        try:
            return (1, Version(version), "")
        except InvalidVersion:
            return (0, Version("0"), version)

    return sorted(versions, key=key, reverse=True)


@click.command()
@click.argument("pattern")
@click.option(
    "-n",
    "--limit",
    default=5,
    show_default=True,
    help="Versions shown per gem",
)
@pass_app
@handle_errors
def search(app: AppContext, pattern: str, limit: int):
    """Search the gem index for names containing PATTERN"""
    with progress_status("Loading gem index..."):
        matches = app.index.search(pattern)
    if not matches:
        print_warning(f"No packages matching '{pattern}'")
        return
    print_table(
        create_search_table(
            {
                name: _newest_first(versions)[:limit]
                for name, versions in sorted(matches.items())
            }
        )
    )
