"""Command-line interface for the focus tracker."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .config import LOG_BASE_NAME, TrackerSettings
from .errors import TrackerError
from .logfile import read_last_entry
from .paths import get_data_dir
from .rotation import list_log_files

logger = logging.getLogger(__name__)

app = typer.Typer(help="Record how long each i3 window holds focus.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def collect(
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        path_type=Path,
        help="Directory holding the rotated focus logs.",
    ),
    heartbeat_seconds: float = typer.Option(
        10.0,
        "--heartbeat",
        min=1.0,
        help="Seconds between re-writes of the focused window's interval.",
    ),
    log_limit: int = typer.Option(
        10,
        "--log-limit",
        min=1,
        help="Number of log files kept before the oldest is replaced.",
    ),
) -> None:
    """Track window focus until interrupted."""
    from .runner import run_tracker

    settings = TrackerSettings.from_values(
        heartbeat_seconds=heartbeat_seconds, log_limit=log_limit, data_dir=data_dir
    )
    try:
        run_tracker(settings)
    except TrackerError as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=exc.exit_code)


@app.command()
def logs(
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        path_type=Path,
        help="Directory holding the rotated focus logs.",
    ),
) -> None:
    """List the rotated log files and the last id recorded in each."""
    directory = data_dir or get_data_dir()
    try:
        files = list_log_files(directory, LOG_BASE_NAME)
    except TrackerError as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=exc.exit_code)
    if not files:
        print(f"No focus logs in {directory}.")
        return

    newest = max(files, key=lambda info: info.modified)
    for info in files:
        try:
            last = read_last_entry(info.path)
        except TrackerError:
            last_id = "?"
        else:
            last_id = str(last.sequence_id) if last else "-"
        marker = "*" if info is newest else " "
        print(
            f"{marker} {info.index:>3}  {info.modified:%Y-%m-%d %H:%M:%S}  "
            f"last id {last_id:<6} {info.path}"
        )
