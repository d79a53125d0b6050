import logging
import os
import sys
from typing import Any

import structlog
from rich.console import Console

console = Console()

LEVEL_STYLES = {
    'debug': 'dim',
    'info': 'green',
    'warning': 'yellow',
    'error': 'bold red',
    'critical': 'bold magenta',
}


class RichConsoleRenderer:
    """
    structlog renderer printing ``key=value`` events through rich.

    An optional ``_style`` key in the event dict overrides the line style.
    """

    def __init__(self, target: Console | None = None):
        self._console = target or Console(stderr=True)

    def __call__(self, logger, name, event_dict):
        custom_style = event_dict.pop('_style', None)

        event = event_dict.pop('event', '')
        log_level = event_dict.pop('level', 'info')
        logger_name = event_dict.pop('logger', None)
        timestamp = event_dict.pop('timestamp', '')
        exception = event_dict.pop('exception', None) or event_dict.pop('exc_info', None)
        stack_info = event_dict.pop('stack_info', None)

        parts = []
        if timestamp:
            parts.append(f"[dim]{timestamp}[/dim]")
        if logger_name:
            parts.append(f"[bold]{logger_name}[/bold]")
        level_style = LEVEL_STYLES.get(log_level, 'white')
        parts.append(f"[{level_style}]{log_level:<8}[/{level_style}]")
        parts.append(str(event))
        for key, value in event_dict.items():
            parts.append(f"[cyan]{key}[/cyan]=[green]{value!r}[/green]")

        message = ' '.join(parts)
        if exception:
            message += f"\n[red]{exception}[/red]"
        if stack_info:
            message += f"\n[dim]{stack_info}[/dim]"

        self._console.print(message, style=custom_style, highlight=False)
        # Already printed; stop the stdlib handler from emitting a blank line.
        raise structlog.DropEvent


def drop_style_processor(logger, method_name, event_dict):
    """Keep the console-only ``_style`` hint out of JSON output."""
    event_dict.pop('_style', None)
    return event_dict


def setup_logging(level: str = 'INFO', json_logs: bool | None = None) -> None:
    """
    Configure structlog for the whole application.

    JSON lines are emitted when ``json_logs`` is true or, when it is left as
    None, when ``ASSETGRAPH_ENV=production``.
    """
    if json_logs is None:
        json_logs = os.getenv('ASSETGRAPH_ENV') == 'production'

    logging.basicConfig(format='%(message)s', stream=sys.stderr, level=level)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        processors = shared_processors + [
            drop_style_processor,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [RichConsoleRenderer()]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
