import structlog
import typer

from assetgraph.core.container import get_container
from assetgraph.core.decorators import handle_errors
from assetgraph.core.logging import console

logger = structlog.get_logger('db_command')
app = typer.Typer(help='Database operations')


@app.command()
@handle_errors
def init():
    """
    Create the ClickHouse database and tables if they do not exist.
    """
    container = get_container()
    with container.get_admin_repository() as repo:
        repo.ensure_schema()
        logger.info('Schema ready', database=repo.config.database)
    console.print('[green]Schema ready.[/green]')


@app.command()
@handle_errors
def reset(
    yes: bool = typer.Option(False, '--yes', '-y', help='Skip confirmation'),
):
    """
    Drop and recreate every asset table (Destructive).
    """
    if not yes:
        typer.confirm('This deletes every asset. Continue?', abort=True)
    container = get_container()
    with container.get_admin_repository() as repo:
        repo.reset_schema()
        logger.warning('Schema reset', database=repo.config.database)
    console.print('[green]Schema recreated.[/green]')
