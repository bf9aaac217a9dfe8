"""Console and file logging for publish runs."""

import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, NoReturn, Optional, Tuple

import typer
from rich.console import Console, Group, RenderableType
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from amipub.common import LogLevel

LOGGER_NAME = "amipub"

_console = Console()

# LogLevel -> (stdlib level, console prefix)
_LEVELS: Dict[LogLevel, Tuple[int, str]] = {
    LogLevel.DEBUG: (logging.DEBUG, ""),
    LogLevel.INFO: (logging.INFO, ""),
    LogLevel.SUCCESS: (logging.INFO, "[bright_green]✓[/bright_green] "),
    LogLevel.WARN: (logging.WARNING, "[yellow]⚠[/yellow] "),
    LogLevel.ERROR: (logging.ERROR, "[bright_red]✗[/bright_red] "),
}


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


class PlainFileFormatter(logging.Formatter):
    """One line per record with rich markup stripped."""

    def format(self, record):
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        message = Text.from_markup(record.getMessage()).plain
        return f"{timestamp} | {record.levelname:<8} | {message}"


def _log_file_path(log_dir: Optional[Path] = None) -> Path:
    log_dir = log_dir or Path.cwd() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"amipub_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"


def setup_logging(log_level: str = "INFO", log_dir: Optional[Path] = None, log_to_file: bool = True) -> logging.Logger:
    """
    Configure the ``amipub`` logger.

    The console gets a RichHandler at ``log_level``. Unless ``log_to_file`` is
    false, every record down to DEBUG, including presigned URLs, also goes to
    a plain-text file under ``log_dir`` (default ./logs).

    Args:
        log_level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the log file
        log_to_file: Whether to write the log file

    Returns:
        The configured logger
    """
    logger = get_logger()
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    console_handler = RichHandler(
        console=_console,
        show_path=False,
        markup=True,
        rich_tracebacks=True,
        omit_repeated_times=False,
        log_time_format="[%Y-%m-%d %H:%M:%S]",
    )
    console_handler.setLevel(getattr(logging, log_level.upper()))
    logger.addHandler(console_handler)

    if log_to_file:
        log_file = _log_file_path(log_dir)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(PlainFileFormatter())
        logger.addHandler(file_handler)
        logger.info(f"Log file: {escape(str(log_file))}")

    return logger


def log_message(level: LogLevel, message: str) -> None:
    """Log ``message`` as plain text behind the console prefix for ``level``."""
    std_level, prefix = _LEVELS.get(level, _LEVELS[LogLevel.INFO])
    get_logger().log(std_level, f"{prefix}{escape(message)}")


def log_section(title: str, section_level: int = 1) -> None:
    """Print a rule before a stage; level 1 is a run, level 2 a stage within it."""
    get_logger().debug(f"== {escape(title)} ==")
    _console.print(Rule(Text(title), style="blue", characters="━" if section_level == 1 else "─"))


def log_duration(operation: str, start_time: float) -> None:
    minutes = (time.time() - start_time) / 60
    log_message(LogLevel.INFO, f"completed {operation} in {minutes:f} minutes")


def _as_error_renderable(part: RenderableType) -> RenderableType:
    if isinstance(part, Rule):
        return Rule(title=part.title, align=part.align, characters=part.characters, style="red")
    if isinstance(part, str):
        return Text.from_markup(part)
    return part


def error_and_exit(*parts: RenderableType, code: int) -> NoReturn:
    """
    Print ``parts`` in a red panel and exit with ``code``.

    Only the CLI calls this; library code raises AmipubError subclasses.

    Raises:
        typer.Exit: Always
    """
    renderables = [_as_error_renderable(part) for part in parts]
    plain = " | ".join(r.plain for r in renderables if isinstance(r, Text))
    get_logger().debug(f"Exiting with code {code}: {plain}")

    _console.print(Panel(Group(*renderables), title="[bold red]Error[/bold red]", border_style="red", padding=(1, 2)))
    _console.file.flush()
    raise typer.Exit(code=code)


def wait_with_progress(
    description: str,
    check_function: Callable[[], Dict],
    timeout_seconds: float = 3600,
    check_interval: float = 30,
) -> bool:
    """
    Poll ``check_function`` until it reports completion or time runs out.

    ``check_function`` returns a dict with ``completed`` (bool) and optionally
    ``progress`` (0-100) and ``description``. Exceptions it raises propagate
    unchanged. The progress display is suppressed when stdout is not a tty.

    Returns:
        bool: True if completed within ``timeout_seconds``
    """
    logger = get_logger()
    logger.info(escape(description))
    deadline = time.monotonic() + timeout_seconds

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TimeElapsedColumn(),
        console=_console,
        transient=True,
        disable=not sys.stdout.isatty(),
    ) as progress:
        task = progress.add_task(escape(description), total=None)

        while time.monotonic() < deadline:
            result = check_function()
            if result.get("completed", False):
                progress.update(task, total=100, completed=100)
                return True

            percent = result.get("progress", 0)
            progress.update(
                task,
                description=escape(result.get("description", description)),
                total=100 if percent else None,
                completed=percent,
            )
            time.sleep(check_interval)

    log_message(LogLevel.WARN, f"{description} did not finish within {int(timeout_seconds)} seconds")
    return False


def display_summary(title: str, items: Dict) -> None:
    """Log ``items`` and print them as a two-column table."""
    logger = get_logger()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()

    logger.info(f"[bold cyan]{escape(title)}[/bold cyan]")
    for key, value in items.items():
        logger.info(f"  [bold]{escape(str(key))}:[/bold] {escape(str(value))}")
        table.add_row(Text(str(key)), Text(str(value)))

    _console.print(Panel(table, title=title, border_style="cyan", padding=(1, 2)))
