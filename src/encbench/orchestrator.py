# Copyright (c) Syntropy Systems
"""Benchmark matrix: every input against every encoder, one sheet each."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from encbench.commands import CommandTemplate, synthesize
from encbench.errors import BenchError, ResultIngestError
from encbench.ingest import ingest_csv, load_hyperfine_json
from encbench.probe import EncoderProber, ProbedEncoder
from encbench.runner import ExportTargets, run_sweep
from encbench.workbook import Sheet, Workbook

if TYPE_CHECKING:
    from collections.abc import Callable

    from encbench.config import RunConfig
    from encbench.models.results import HyperfineExport

    SweepDriver = Callable[[CommandTemplate, RunConfig], ExportTargets]

logger = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    """What to do when one (input, encoder) pair fails."""

    ABORT = "abort"  # re-raise; the whole invocation stops
    CONTINUE = "continue"  # record the failure and move on


@dataclass
class PairOutcome:
    """Result of benchmarking one (input, encoder) pair."""

    infile: Path
    encoder: Path
    probed: ProbedEncoder | None = None
    template: CommandTemplate | None = None
    sheet: Sheet | None = None
    summary: HyperfineExport | None = None
    error: BenchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BenchmarkReport:
    """Everything one invocation produced."""

    workbook: Workbook = field(default_factory=Workbook)
    outcomes: list[PairOutcome] = field(default_factory=list)

    @property
    def failed(self) -> list[PairOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def succeeded(self) -> list[PairOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]


class Orchestrator:
    """Runs the (input × encoder) matrix strictly one pair at a time."""

    def __init__(
        self,
        config: RunConfig,
        *,
        prober: EncoderProber | None = None,
        driver: SweepDriver | None = None,
        policy: FailurePolicy = FailurePolicy.ABORT,
        dry_run: bool = False,
    ) -> None:
        self.config = config
        self.prober = prober or EncoderProber(timeout=config.probe_timeout)
        self.driver = driver or run_sweep
        self.policy = policy
        self.dry_run = dry_run

    def run(self, inputs: Sequence[Path], encoders: Sequence[Path]) -> BenchmarkReport:
        """Benchmark each input with each encoder, in that order."""
        report = BenchmarkReport()

        for infile in inputs:
            for encoder in encoders:
                outcome = PairOutcome(infile=infile, encoder=encoder)
                report.outcomes.append(outcome)
                try:
                    _ = self.run_pair(outcome)
                except BenchError as e:
                    outcome.error = e
                    if self.policy is FailurePolicy.ABORT:
                        raise
                    logger.warning("Skipping %s with %s: %s", infile, encoder, e)
                    continue

                if outcome.sheet is not None:
                    report.workbook.append(outcome.sheet)

        return report

    def run_pair(self, outcome: PairOutcome) -> PairOutcome:
        """Probe, synthesize, sweep and ingest one pair, filling ``outcome``.

        The CSV export is the result; the JSON export only feeds the summary,
        so a missing or malformed one leaves ``outcome.summary`` unset.
        """
        outcome.probed = self.prober.probe(outcome.encoder)
        outcome.template = synthesize(outcome.probed, outcome.infile, self.config)
        logger.debug("Command template: %s", outcome.template.command)

        if self.dry_run:
            return outcome

        targets = self.driver(outcome.template, self.config)
        outcome.sheet = ingest_csv(targets.csv, name=outcome.template.artifacts.result_base)

        if targets.json is not None and targets.json.exists():
            try:
                outcome.summary = load_hyperfine_json(targets.json)
            except ResultIngestError as e:
                logger.warning(
                    "No summary for %s: %s", outcome.template.artifacts.result_base, e
                )

        return outcome
