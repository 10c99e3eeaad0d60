"""Command-line interface for Ruby gem management"""

import click
from rich.panel import Panel
from typing import Optional, Tuple

from . import __version__
from .commands import (
    env,
    export,
    install,
    list_packages,
    refresh,
    remove,
    search,
    update,
)
from .commands.context import AppContext
from .config import load_settings
from .core.exceptions import ConfigError
from .logging import configure_logging
from .ui.console import console, print_error
from .ui.style import DEFAULT_PANEL


class CliGroup(click.Group):
    """Command group with custom help formatting"""

    def format_help(self, ctx, formatter):
        """Format help message with styling"""
        console.print(
            Panel.fit(
                "\n".join(
                    [
                        "[bold blue]Package Management:[/bold blue]",
                        "  [cyan]install[/cyan]     [dim]Install gems and their runtime dependencies[/dim] (alias: [cyan]add[/cyan])",
                        "  [cyan]remove[/cyan]      [dim]Remove installed gems[/dim] (alias: [cyan]rm[/cyan])",
                        "  [cyan]update[/cyan]      [dim]Upgrade every installed gem[/dim] (alias: [cyan]up[/cyan])",
                        "  [cyan]list[/cyan]        [dim]List installed gems per interpreter[/dim] (alias: [cyan]ls[/cyan])",
                        "",
                        "[bold blue]Gem Index:[/bold blue]",
                        "  [cyan]search[/cyan]      [dim]Search the gem index[/dim] ([cyan]-n[/cyan]: versions shown)",
                        "  [cyan]refresh[/cyan]     [dim]Download the gem index again[/dim]",
                        "",
                        "[bold blue]Environments:[/bold blue]",
                        "  [cyan]env list[/cyan]    [dim]List environments[/dim]",
                        "  [cyan]env use[/cyan]     [dim]Switch to an environment, creating it if needed[/dim]",
                        "  [cyan]env remove[/cyan]  [dim]Delete an environment[/dim]",
                        "  [cyan]export[/cyan]      [dim]Print shell exports for an environment[/dim]",
                        "",
                        "[bold blue]Global Options:[/bold blue]",
                        "  [cyan]-e, --env[/cyan]          [dim]Environment to work on (default: active)[/dim]",
                        "  [cyan]-i, --interpreter[/cyan]  [dim]Interpreter id, repeatable (default: all found)[/dim]",
                        "  [cyan]-v, --verbose[/cyan]      [dim]Show build output and progress logging[/dim]",
                        "  [cyan]--version[/cyan]          [dim]Show version number[/dim]",
                    ]
                ),
                title="rbmin - Ruby gem manager",
                title_align=DEFAULT_PANEL.title_align,
                border_style=DEFAULT_PANEL.border_style,
                padding=(2, 2),
            )
        )


@click.group(cls=CliGroup)
@click.option(
    "--version",
    "-V",
    is_flag=True,
    help="Show version number",
    is_eager=True,
    expose_value=False,
    callback=lambda ctx, param, value: value
    and (console.print(f"rbmin {__version__}") or ctx.exit()),
)
@click.option("-e", "--env", "env_name", help="Environment to work on")
@click.option(
    "-i",
    "--interpreter",
    "interpreters",
    multiple=True,
    help="Interpreter id (repeatable)",
)
@click.option("-v", "--verbose", is_flag=True, help="Show build output")
@click.pass_context
def cli(
    ctx: click.Context,
    env_name: Optional[str],
    interpreters: Tuple[str, ...],
    verbose: bool,
):
    """rbmin - Ruby gem manager"""
    try:
        settings = load_settings()
    except ConfigError as e:
        print_error(e.message, e.details)
        ctx.exit(1)

    configure_logging(
        "INFO" if verbose else settings.log_level, settings.log_file
    )
    ctx.obj = AppContext(
        settings=settings,
        verbose=verbose,
        env_name=env_name,
        requested=interpreters,
    )


# Register package management commands
cli.add_command(install)
cli.add_command(remove)
cli.add_command(update)
cli.add_command(list_packages)
cli.add_command(search)
cli.add_command(refresh)

# Register environment commands
cli.add_command(env)
cli.add_command(export)

# Register command aliases
cli.add_command(install, name="add")
cli.add_command(remove, name="rm")
cli.add_command(update, name="up")
cli.add_command(list_packages, name="ls")


if __name__ == "__main__":
    cli()
