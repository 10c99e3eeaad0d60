"""Remove packages command"""

import click
from typing import List

from ..context import AppContext, handle_errors, pass_app
from ...ui.console import print_outcomes


@click.command()
@click.argument("packages", nargs=-1, required=True)
@pass_app
@handle_errors
def remove(app: AppContext, packages: List[str]):
    """Remove installed gems

    PACKAGES: One or more gem names to remove
    """
    installer = app.installer()
    interpreters = app.interpreters()
    for name in packages:
        print_outcomes(installer.remove(interpreters, name), verbose=app.verbose)
