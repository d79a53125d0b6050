import functools
from collections.abc import Callable
from typing import Any

import structlog
import typer

from assetgraph.core.logging import console
from assetgraph.core.repository import StoreError
from assetgraph.core.validation import AssetValidationError

logger = structlog.get_logger('cli')


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Turn exceptions escaping a CLI command into a message and an exit code."""
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (typer.Exit, typer.Abort):
            raise
        except AssetValidationError as e:
            console.print('[bold red]Validation Error:[/]')
            for reason in e.reasons:
                console.print(f"  - {reason}")
            raise typer.Exit(1)
        except ValueError as e:
            console.print(f"[bold red]Validation Error:[/] {e}")
            logger.debug('Validation error', exc_info=True)
            raise typer.Exit(1)
        except StoreError as e:
            console.print(f"[bold red]Store Error:[/] {e}")
            logger.debug('Store error', exc_info=True)
            raise typer.Exit(2)
        except KeyboardInterrupt:
            console.print('\n[yellow]Operation cancelled by user.[/]')
            raise typer.Exit(130)
        except Exception as e:
            console.print(f"[bold red]Unexpected Error:[/] {e}")
            logger.exception('Unexpected error')
            raise typer.Exit(1)
    return wrapper
