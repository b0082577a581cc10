# Copyright (c) Syntropy Systems
"""Main CLI entry point for encbench."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from encbench.cli.doctor import doctor
from encbench.cli.probe import probe
from encbench.cli.run import run

app = typer.Typer(
    name="encbench",
    help=(
        "Speed-level benchmarks for AV1 encoders. Probe encoders, sweep "
        "presets with hyperfine, collect one workbook."
    ),
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Log probes, commands and ingested files",
    ),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


# Register commands
_ = app.command()(run)
_ = app.command()(probe)
_ = app.command()(doctor)


if __name__ == "__main__":
    app()
