# Copyright (c) Syntropy Systems
"""encbench probe command."""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from encbench.errors import BenchError
from encbench.config import DEFAULT_PROBE_TIMEOUT
from encbench.probe import EncoderFamily, EncoderProber

console = Console()


def probe(
    encoders: list[Path] = typer.Argument(
        ...,
        help="Encoder binaries to identify",
    ),
) -> None:
    """Identify encoder binaries and report their versions."""
    prober = EncoderProber(timeout=DEFAULT_PROBE_TIMEOUT)

    table = Table(title="Encoders")
    table.add_column("Path")
    table.add_column("Family")
    table.add_column("Version")
    table.add_column("Overwrite (-y)", style="dim")

    failed = 0
    for encoder in encoders:
        try:
            probed = prober.probe(encoder)
        except BenchError as e:
            table.add_row(str(encoder), "[red]unknown[/red]", str(e), "")
            failed += 1
            continue

        overwrite = ""
        if probed.family is EncoderFamily.RAV1E:
            overwrite = "yes" if probed.supports_overwrite else "no"
        table.add_row(str(encoder), probed.family.value, probed.version.version, overwrite)

    console.print(table)

    if failed:
        console.print(f"[red]Could not identify {failed} encoder(s)[/red]")
        raise typer.Exit(1)
