"""Export search paths command"""

import click
from typing import Optional

from ..context import AppContext, handle_errors, pass_app
from ...core.export import export_environment, format_exports


@click.command()
@click.argument("interpreter", required=False)
@pass_app
@handle_errors
def export(app: AppContext, interpreter: Optional[str] = None):
    """Print shell exports for an environment and interpreter

    Use as: eval "$(rbm export ruby19)"
    """
    env = app.environment()
    if interpreter is None:
        interpreter = app.interpreters()[0]
    variables = export_environment(app.store, env, interpreter, app.environ)
    click.echo(format_exports(variables))
