# Copyright (c) Syntropy Systems
"""Pydantic models for hyperfine's JSON export."""

from __future__ import annotations

from pydantic import Field

from .base import BenchBaseModel, ExtraAllowModel


class HyperfineResult(ExtraAllowModel):
    """Timing statistics for one sweep point."""

    command: str
    mean: float
    stddev: float | None = None
    median: float | None = None
    user: float | None = None
    system: float | None = None
    min: float | None = None
    max: float | None = None
    times: list[float] = Field(default_factory=list)
    exit_codes: list[int] = Field(default_factory=list)
    parameters: dict[str, str] = Field(default_factory=dict)

    def parameter(self, name: str) -> str | None:
        """Return the value the sweep substituted for ``name``."""
        return self.parameters.get(name)


class HyperfineExport(BenchBaseModel):
    """Top-level document written by ``hyperfine --export-json``."""

    results: list[HyperfineResult] = Field(default_factory=list)

    def fastest(self) -> HyperfineResult | None:
        """Return the result with the lowest mean, if any."""
        if not self.results:
            return None
        return min(self.results, key=lambda r: r.mean)

    def slowest(self) -> HyperfineResult | None:
        """Return the result with the highest mean, if any."""
        if not self.results:
            return None
        return max(self.results, key=lambda r: r.mean)
