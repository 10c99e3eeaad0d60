"""Install packages command"""

import click
from typing import List

from ..context import AppContext, handle_errors, pass_app
from ...ui.console import print_outcomes, print_tips, progress_status


@click.command()
@click.argument("packages", nargs=-1, required=True)
@pass_app
@handle_errors
def install(app: AppContext, packages: List[str]):
    """Install gems and their runtime dependencies

    PACKAGES: Gem names, name-version pins or paths to .gem archives
    """
    installer = app.installer()
    interpreters = app.interpreters()

    outcomes = []
    for request in packages:
        with progress_status(f"Installing {request}..."):
            results = installer.install(interpreters, request)
        print_outcomes(results, verbose=app.verbose)
        outcomes.extend(results)

    if any(outcome.details for outcome in outcomes if not outcome.ok):
        if not app.verbose:
            print_tips(
                ["Run [cyan]rbm -v install ...[/cyan] to see the build output"]
            )
    if not any(outcome.ok for outcome in outcomes):
        click.get_current_context().exit(1)
