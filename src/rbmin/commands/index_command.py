"""Gem index commands"""

import click

from .context import AppContext, handle_errors, pass_app
from ..core.index import INDEX_FILES
from ..ui.console import print_success, progress_status


@click.command()
@pass_app
@handle_errors
def refresh(app: AppContext):
    """Download the gem index again"""
    with progress_status("Fetching gem index..."):
        app.index.refresh()
    print_success(f"Updated {len(INDEX_FILES)} index files from {app.index.source}")
