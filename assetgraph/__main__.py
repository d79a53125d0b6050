from pathlib import Path

import typer

from assetgraph.__version__ import __version__
from assetgraph.commands import db
from assetgraph.commands import inventory
from assetgraph.core.container import get_container
from assetgraph.core.logging import console
from assetgraph.core.logging import setup_logging
from assetgraph.engine.sorting import use_system_collation

app = typer.Typer(
    help='AssetGraph: asset inventory with relationship, dependency and vulnerability tracking.',
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)

app.command('list')(inventory.list_assets)
app.command('stats')(inventory.stats)
app.command('show')(inventory.show)
app.command('import')(inventory.import_assets)
app.command('delete')(inventory.delete)
app.add_typer(db.app, name='db')


def version_callback(value: bool):
    if value:
        console.print(f"assetgraph {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    debug: bool = typer.Option(False, '--debug', help='Enable debug logging'),
    store: Path | None = typer.Option(
        None, '--store', envvar='ASSETGRAPH_STORE',
        help='Use the JSONL file store at this path instead of ClickHouse',
    ),
    version: bool = typer.Option(
        False, '--version', callback=version_callback, is_eager=True,
        help='Show version and exit',
    ),
):
    """
    AssetGraph CLI - query and maintain the asset inventory.
    """
    level = 'DEBUG' if debug else 'INFO'
    setup_logging(level=level)
    use_system_collation()
    if store is not None:
        get_container().use_file_store(store)


if __name__ == '__main__':
    app()
