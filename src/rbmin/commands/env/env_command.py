"""Environment management commands"""

import click
from rich.text import Text

from ..context import AppContext, handle_errors, pass_app
from ...ui.console import (
    console,
    create_summary_panel,
    print_success,
)
from ...ui.style import StyleType, SymbolType


@click.group()
def env():
    """Manage environments"""
    pass


@env.command(name="list")
@pass_app
@handle_errors
def list_environments(app: AppContext):
    """List environments, marking the active one"""
    active = app.store.ensure_active()
    content = Text()
    for i, name in enumerate(app.store.names()):
        if i:
            content.append("\n")
        if name == active:
            content.append(f"{SymbolType.ARROW} ", style=StyleType.ENV_ACTIVE())
            content.append(name, style=StyleType.ENV_ACTIVE())
        else:
            content.append(f"  {name}", style=StyleType.ENV_NAME())
        interpreters = app.store.interpreters(name)
        if interpreters:
            content.append(
                f"  ({', '.join(interpreters)})", style=StyleType.ENV_PATH()
            )
    console.print(create_summary_panel("Environments", content))


@env.command()
@click.argument("name")
@pass_app
@handle_errors
def use(app: AppContext, name: str):
    """Switch to environment NAME, creating it if needed"""
    created = not app.store.exists(name)
    app.store.activate(name)
    if created:
        print_success(f"Created and activated environment [cyan]{name}[/cyan]")
    else:
        print_success(f"Activated environment [cyan]{name}[/cyan]")


@env.command()
@click.argument("name")
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation")
@pass_app
@handle_errors
def remove(app: AppContext, name: str, yes: bool):
    """Delete environment NAME and everything installed in it"""
    app.store.require(name)
    if not yes:
        click.confirm(f"Remove environment '{name}'?", abort=True)
    app.store.remove(name)
    print_success(f"Removed environment [cyan]{name}[/cyan]")
    console.print(
        f"[dim]Active environment: [cyan]{app.store.ensure_active()}[/cyan][/dim]"
    )
