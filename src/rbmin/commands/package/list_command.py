"""List installed packages command"""

import click

from ..context import AppContext, handle_errors, pass_app
from ...ui.console import create_package_table, print_info, print_table


@click.command(name="list")
@pass_app
@handle_errors
def list_packages(app: AppContext):
    """List installed gems per interpreter"""
    env = app.environment()
    if app.requested:
        interpreters = app.interpreters()
    else:
        interpreters = app.store.interpreters(env)

    installed = {
        interpreter: app.store.list_installed(env, interpreter)
        for interpreter in interpreters
    }
    if not any(installed.values()):
        print_info(f"No packages installed in environment '{env}'")
        return
    print_table(create_package_table(f"Environment: {env}", installed))
