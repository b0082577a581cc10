# Copyright (c) Syntropy Systems
"""encbench doctor command."""

import shutil
import subprocess
from importlib.metadata import PackageNotFoundError, version

import typer
from rich.console import Console

from encbench.config import find_config_file

console = Console()


def doctor(
    hyperfine: str = typer.Option(
        "hyperfine",
        "--hyperfine",
        envvar="ENCBENCH_HYPERFINE",
        help="hyperfine executable to check",
    ),
) -> None:
    """Check the benchmark toolchain and diagnose issues.

    Verifies:
    - hyperfine is installed and runs
    - openpyxl is available for workbook export
    - which configuration file would be used
    """
    issues: list[str] = []
    warnings: list[str] = []

    # Check hyperfine
    hyperfine_path = shutil.which(hyperfine)
    if hyperfine_path is None:
        console.print(f"[red]✗[/red] {hyperfine} not found on PATH")
        issues.append("hyperfine missing")
    else:
        try:
            result = subprocess.run(  # noqa: S603
                [hyperfine_path, "--version"],
                capture_output=True,
                text=True,
                timeout=5,
                check=False,
            )
            if result.returncode == 0:
                console.print(f"[green]✓[/green] {result.stdout.strip()} ({hyperfine_path})")
            else:
                console.print(f"[yellow]⚠[/yellow] {hyperfine} --version failed")
                warnings.append("hyperfine --version failed")
        except subprocess.TimeoutExpired:
            console.print(f"[yellow]⚠[/yellow] {hyperfine} --version timed out")
            warnings.append("hyperfine timed out")
        except OSError as e:
            console.print(f"[red]✗[/red] Cannot run {hyperfine}: {e}")
            issues.append(f"Cannot run hyperfine: {e}")

    # Check workbook writer
    try:
        openpyxl_version = version("openpyxl")
        console.print(f"[green]✓[/green] openpyxl {openpyxl_version}")
    except PackageNotFoundError:
        console.print("[red]✗[/red] openpyxl not installed")
        issues.append("openpyxl missing")

    # Config
    config_path = find_config_file()
    if config_path is not None:
        console.print(f"[dim]•[/dim] Config: {config_path}")
    else:
        console.print("[dim]•[/dim] No encbench.yaml found, using defaults")

    # Summary
    console.print()
    if issues:
        console.print(f"[red]Found {len(issues)} issue(s)[/red]")
        for issue in issues:
            console.print(f"  - {issue}")
        raise typer.Exit(1)
    if warnings:
        console.print(f"[yellow]Found {len(warnings)} warning(s)[/yellow]")
        for warning in warnings:
            console.print(f"  - {warning}")
    else:
        console.print("[green]All checks passed[/green]")
