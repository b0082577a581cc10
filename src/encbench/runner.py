# Copyright (c) Syntropy Systems
"""hyperfine process runner with orphan prevention."""
from __future__ import annotations

import contextlib
import ctypes
import logging
import os
import signal
import subprocess
import sys
import time
from dataclasses import dataclass
from typing import IO, TYPE_CHECKING

from encbench.errors import SpawnError, SweepError

if TYPE_CHECKING:
    from pathlib import Path

    from encbench.commands import CommandTemplate
    from encbench.config import RunConfig

logger = logging.getLogger(__name__)


def setup_pdeathsig() -> None:
    """Set PDEATHSIG so hyperfine dies when encbench dies.

    Only works on Linux.
    """
    if sys.platform != "linux":
        return
    try:
        libc = ctypes.CDLL("libc.so.6", use_errno=True)
        pr_set_pdeathsig = 1
        libc.prctl(pr_set_pdeathsig, signal.SIGKILL)
    except (AttributeError, OSError):
        return


@dataclass(frozen=True)
class ExportTargets:
    """Files hyperfine is asked to write for one sweep."""

    csv: Path
    markdown: Path
    json: Path | None = None


def build_hyperfine_argv(
    template: CommandTemplate,
    config: RunConfig,
) -> tuple[list[str], ExportTargets]:
    """Assemble the hyperfine invocation for one sweep.

    Layout: ``-r N [--show-output] -P ss MIN MAX CMD --export-csv ...
    --export-markdown ... [--export-json ...]``.
    """
    artifacts = template.artifacts
    targets = ExportTargets(
        csv=artifacts.export_path("csv"),
        markdown=artifacts.export_path("md"),
        json=artifacts.export_path("json") if config.export_json else None,
    )

    argv = [config.hyperfine, "-r", str(config.runs)]
    if config.show_output:
        argv.append("--show-output")
    argv.extend(
        [
            "-P",
            template.parameter,
            str(template.bounds.low),
            str(template.bounds.high),
            template.command,
            "--export-csv",
            str(targets.csv),
            "--export-markdown",
            str(targets.markdown),
        ]
    )
    if targets.json is not None:
        argv.extend(["--export-json", str(targets.json)])

    return argv, targets


class HyperfineRunner:
    """Runs one hyperfine sweep with proper process management.

    Features:
    - Uses start_new_session=True for reliable process group
    - Sets PDEATHSIG on Linux to prevent orphans
    - Optionally captures stdout/stderr to a log file
    - Provides graceful and forceful termination
    """

    argv: list[str]
    log_path: Path | None
    _process: subprocess.Popen[bytes] | None
    _exit_code: int | None
    _output_file: IO[str] | None

    def __init__(self, argv: list[str], log_path: Path | None = None) -> None:
        """Initialize a runner.

        Args:
            argv: hyperfine invocation as argv tokens (no shell)
            log_path: File to capture output in; None inherits the terminal

        """
        self.argv = argv
        self.log_path = log_path

        self._process = None
        self._exit_code = None
        self._output_file = None

    def start(self) -> None:
        """Start the hyperfine process."""
        stdout: IO[str] | None = None
        if self.log_path is not None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._output_file = self.log_path.open("w")
            stdout = self._output_file

        logger.debug("Starting %s", self.argv)
        try:
            self._process = subprocess.Popen(  # noqa: S603
                self.argv,
                stdout=stdout,
                stderr=subprocess.STDOUT if stdout is not None else None,
                start_new_session=True,
                preexec_fn=setup_pdeathsig if sys.platform == "linux" else None,  # noqa: PLW1509
            )
        except OSError as e:
            self._cleanup()
            msg = f"Cannot run {self.argv[0]}: {e}"
            raise SpawnError(msg) from e

    def wait(self, timeout: float | None = None, grace_period: float = 10.0) -> int:
        """Wait for the process to finish and return exit code.

        With a timeout, an overrunning process is killed and SweepError raised.
        """
        if self._process is None:
            return self._exit_code or 0

        try:
            code = self._process.wait(timeout=timeout)
        except subprocess.TimeoutExpired as e:
            code = self.kill(grace_period)
            msg = f"{self.argv[0]} did not finish within {timeout}s"
            raise SweepError(msg, exit_code=code) from e

        self._exit_code = code
        self._cleanup()
        return code

    def kill(self, grace_period: float = 10.0) -> int:
        """Kill the hyperfine process group.

        First sends SIGTERM, waits for grace_period, then sends SIGKILL if
        still alive. Returns the exit code (negative signal number if killed).
        """
        if self._process is None:
            return self._exit_code or 0

        if self._process.poll() is not None:
            exit_code = self._process.returncode or 0
            self._exit_code = exit_code
            self._cleanup()
            return exit_code

        try:
            pgid = os.getpgid(self._process.pid)
        except (OSError, ProcessLookupError):
            self._cleanup()
            return self._exit_code or -signal.SIGKILL

        with contextlib.suppress(OSError, ProcessLookupError):
            os.killpg(pgid, signal.SIGTERM)

        deadline = time.time() + grace_period
        while time.time() < deadline:
            if self._process.poll() is not None:
                exit_code = self._process.returncode or 0
                self._exit_code = exit_code
                self._cleanup()
                return exit_code
            time.sleep(0.1)

        with contextlib.suppress(OSError, ProcessLookupError):
            os.killpg(pgid, signal.SIGKILL)

        with contextlib.suppress(subprocess.TimeoutExpired):
            _ = self._process.wait(timeout=5.0)

        exit_code = self._process.returncode or -signal.SIGKILL
        self._exit_code = exit_code
        self._cleanup()
        return exit_code

    def _cleanup(self) -> None:
        if self._output_file:
            with contextlib.suppress(OSError):
                self._output_file.close()
            self._output_file = None

    @property
    def exit_code(self) -> int | None:
        """Get the exit code if finished."""
        return self._exit_code


def run_sweep(template: CommandTemplate, config: RunConfig) -> ExportTargets:
    """Drive hyperfine once over the template's sweep range.

    Blocks until hyperfine exits. With ``config.log_dir`` set, hyperfine's
    output goes to ``<log_dir>/<result base>.log``. Raises SpawnError if it
    cannot start and SweepError on a non-zero exit or timeout. If the wait is
    interrupted (Ctrl-C included) the hyperfine process group is killed
    before the exception propagates.
    """
    argv, targets = build_hyperfine_argv(template, config)
    targets.csv.parent.mkdir(parents=True, exist_ok=True)

    base = template.artifacts.result_base
    log_path = config.log_dir / f"{base}.log" if config.log_dir is not None else None

    logger.info(
        "Sweeping %s=%d..%d for %s",
        template.parameter,
        template.bounds.low,
        template.bounds.high,
        base,
    )

    runner = HyperfineRunner(argv, log_path=log_path)
    runner.start()
    try:
        code = runner.wait(timeout=config.timeout)
    except BaseException:
        _ = runner.kill()
        raise

    if code != 0:
        msg = f"hyperfine exited with code {code} for {base}"
        raise SweepError(msg, exit_code=code)

    return targets
