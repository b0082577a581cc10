# Copyright (c) Syntropy Systems
"""Error taxonomy for encbench."""
from __future__ import annotations


class BenchError(Exception):
    """Base class for every failure surfaced by the benchmark core."""


class ProbeError(BenchError):
    """No encoder family recognised the binary's output."""


class SpawnError(BenchError):
    """A subprocess could not be started (missing or not executable)."""


class SweepError(BenchError):
    """The measurement engine exited abnormally."""

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class ResultIngestError(BenchError):
    """An exported result file could not be opened or parsed."""


class InvalidInputError(BenchError):
    """An input path has no usable file stem."""


class WorkbookExportError(BenchError):
    """The aggregate workbook could not be serialized."""
