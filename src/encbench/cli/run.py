# Copyright (c) Syntropy Systems
"""encbench run command."""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from encbench.config import load_config, resolve_run_config
from encbench.errors import BenchError
from encbench.orchestrator import BenchmarkReport, FailurePolicy, Orchestrator
from encbench.workbook import write_workbook

console = Console()


def run(
    inputs: list[Path] = typer.Argument(
        ...,
        help="Input files",
    ),
    encoders: list[Path] = typer.Option(
        ...,
        "--encoder", "-e",
        help="Encoder binary (repeat for several)",
    ),
    limit: int | None = typer.Option(
        None,
        "--limit", "-l",
        min=1,
        help="Number of frames to encode [default: 10]",
    ),
    outdir: Path | None = typer.Option(
        None,
        "--outdir", "-O",
        help="Output directory for the encoded files [default: ~/Encoded]",
    ),
    tag: str | None = typer.Option(
        None,
        "--tag", "-t",
        help="Descriptive tag [default: <hostname>-<machine>]",
    ),
    runs: int | None = typer.Option(
        None,
        "--runs", "-r",
        min=1,
        help="Perform exactly NUM runs for each command [default: 2]",
    ),
    outname: Path | None = typer.Option(
        None,
        "--outname", "-o",
        help="Filename of the aggregate .xlsx workbook",
    ),
    threads: int | None = typer.Option(
        None,
        "--threads",
        min=1,
        help="Set the threadpool size [default: 16]",
    ),
    show_output: bool = typer.Option(
        False,
        "--show-output",
        help=(
            "Print the encoders' stdout and stderr instead of suppressing it. "
            "Slows the benchmark down; use for debugging."
        ),
    ),
    extra_aom: str | None = typer.Option(
        None,
        "--extra-aom",
        envvar="EXTRA_AOM",
        help="Extra arguments for aom encoders",
    ),
    extra_rav1e: str | None = typer.Option(
        None,
        "--extra-rav1e",
        envvar="EXTRA_RAV1E",
        help="Extra arguments for rav1e encoders",
    ),
    extra_svt: str | None = typer.Option(
        None,
        "--extra-svt",
        envvar="EXTRA_SVT",
        help="Extra arguments for svt-av1 encoders",
    ),
    runner: str | None = typer.Option(
        None,
        "--runner",
        envvar="RUNNER_COMMAND",
        help="Command prefix used to execute the encoder",
    ),
    rav1e_tiles: int | None = typer.Option(
        None,
        "--rav1e-tiles",
        min=1,
        help="Tile count passed to rav1e [default: 16]",
    ),
    hyperfine: str | None = typer.Option(
        None,
        "--hyperfine",
        envvar="ENCBENCH_HYPERFINE",
        help="hyperfine executable [default: hyperfine]",
    ),
    results_dir: Path | None = typer.Option(
        None,
        "--results-dir",
        help="Directory for the hyperfine exports [default: current directory]",
    ),
    no_json: bool = typer.Option(
        False,
        "--no-json",
        help="Skip hyperfine's JSON export",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        help="Kill a sweep that runs longer than this many seconds (must be > 0)",
    ),
    probe_timeout: float | None = typer.Option(
        None,
        "--probe-timeout",
        help="Give up on an encoder probe after this many seconds [default: 30]",
    ),
    log_dir: Path | None = typer.Option(
        None,
        "--log-dir",
        help="Write each sweep's hyperfine output to <log-dir>/<result>.log",
    ),
    keep_going: bool = typer.Option(
        False,
        "--keep-going", "-k",
        help="Skip failing input/encoder pairs instead of aborting",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run", "-n",
        help="Probe encoders and print the commands without running them",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config", "-c",
        exists=True,
        dir_okay=False,
        help="Defaults file [default: nearest encbench.yaml]",
    ),
) -> None:
    r"""Benchmark every INPUT with every encoder across its speed levels.

    Example:

    \b
        encbench run clip.y4m -e ./aomenc -e ./rav1e -l 30 -o bench.xlsx
    """
    if outname is not None and outname.suffix.lower() != ".xlsx":
        console.print("[red]Error:[/red] Workbook output must be .xlsx")
        raise typer.Exit(1)

    try:
        defaults = load_config(config_file)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from e

    try:
        config = resolve_run_config(
            defaults,
            limit=limit,
            threads=threads,
            tag=tag,
            runs=runs,
            outdir=outdir,
            results_dir=results_dir,
            extra_aom=extra_aom,
            extra_rav1e=extra_rav1e,
            extra_svt=extra_svt,
            runner=runner,
            rav1e_tiles=rav1e_tiles,
            hyperfine=hyperfine,
            timeout=timeout,
            probe_timeout=probe_timeout,
            log_dir=log_dir,
            show_output=show_output,
            export_json=not no_json,
        )
    except BenchError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if not dry_run:
        try:
            config.outdir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            console.print(f"[red]Error:[/red] Cannot create {config.outdir}: {e}")
            raise typer.Exit(1) from e

    orchestrator = Orchestrator(
        config,
        policy=FailurePolicy.CONTINUE if keep_going else FailurePolicy.ABORT,
        dry_run=dry_run,
    )

    try:
        report = orchestrator.run(inputs, encoders)
    except BenchError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if dry_run:
        _print_commands(report)
        console.print("\n[yellow]Dry run - nothing executed[/yellow]")
        return

    _print_summary(report)

    if outname is not None:
        try:
            _ = write_workbook(report.workbook, outname)
        except BenchError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e
        console.print(
            f"[green]Wrote {len(report.workbook)} sheet(s) to {outname}[/green]"
        )

    if report.failed:
        console.print(f"[red]{len(report.failed)} pair(s) failed[/red]")
        for outcome in report.failed:
            console.print(f"  - {outcome.infile} × {outcome.encoder}: {outcome.error}")
        raise typer.Exit(1)


def _print_commands(report: BenchmarkReport) -> None:
    table = Table(title="Planned sweeps")
    table.add_column("#", style="dim")
    table.add_column("Sheet")
    table.add_column("Levels")
    table.add_column("Command")

    for i, outcome in enumerate(report.outcomes):
        template = outcome.template
        if template is None:
            table.add_row(str(i), "[red]failed[/red]", "", str(outcome.error))
            continue
        table.add_row(
            str(i),
            template.artifacts.result_base,
            f"{template.bounds.low}-{template.bounds.high}",
            template.command,
        )

    console.print(table)


def _print_summary(report: BenchmarkReport) -> None:
    table = Table(title="Benchmark results")
    table.add_column("Input")
    table.add_column("Encoder")
    table.add_column("Version")
    table.add_column("Fastest level")
    table.add_column("Mean (s)", justify="right")
    table.add_column("Status")

    for outcome in report.outcomes:
        family = outcome.probed.family.value if outcome.probed else "?"
        version = outcome.probed.version.version if outcome.probed else ""
        level = ""
        mean = ""
        if outcome.summary is not None and outcome.template is not None:
            fastest = outcome.summary.fastest()
            if fastest is not None:
                level = fastest.parameter(outcome.template.parameter) or ""
                mean = f"{fastest.mean:.3f}"
        status = "[green]ok[/green]" if outcome.ok else "[red]failed[/red]"
        table.add_row(outcome.infile.name, family, version, level, mean, status)

    console.print(table)
