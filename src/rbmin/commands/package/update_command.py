"""Update packages command"""

import click

from ..context import AppContext, handle_errors, pass_app
from ...ui.console import print_info, print_outcomes, progress_status


@click.command()
@pass_app
@handle_errors
def update(app: AppContext):
    """Upgrade every installed gem to the version the index resolves to"""
    installer = app.installer()
    interpreters = app.interpreters()
    if not installer.installed_names(interpreters):
        print_info("No packages installed")
        return

    with progress_status("Updating packages..."):
        outcomes = installer.update(interpreters)
    print_outcomes(outcomes, verbose=app.verbose)
