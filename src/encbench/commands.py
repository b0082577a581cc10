# Copyright (c) Syntropy Systems
"""Family-specific encoder command lines with an unresolved sweep placeholder."""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from encbench.naming import PLACEHOLDER, PLACEHOLDER_TOKEN, ArtifactName, artifact_names
from encbench.probe import EncoderFamily

if TYPE_CHECKING:
    from encbench.config import RunConfig, SweepBounds
    from encbench.probe import ProbedEncoder


@dataclass(frozen=True)
class CommandTemplate:
    """A command for the measurement engine to sweep over."""

    command: str
    parameter: str
    bounds: SweepBounds
    artifacts: ArtifactName


def _aom_args(encoder: ProbedEncoder, infile: Path, outfile: Path, config: RunConfig) -> list[str]:
    return [
        "--tile-rows=2",
        "--tile-columns=2",
        f"--cpu-used={PLACEHOLDER_TOKEN}",
        f"--threads={config.threads}",
        f"--limit={config.limit}",
        "-o",
        str(outfile),
        str(infile),
    ]


def _rav1e_args(encoder: ProbedEncoder, infile: Path, outfile: Path, config: RunConfig) -> list[str]:
    args = [
        "--tiles",
        str(config.rav1e_tiles),
        "--threads",
        str(config.threads),
        "-l",
        str(config.limit),
        "-s",
        PLACEHOLDER_TOKEN,
        "-o",
        str(outfile),
        str(infile),
    ]
    # -y exists only in some rav1e builds
    if encoder.supports_overwrite:
        args.append("-y")
    return args


def _svt_args(encoder: ProbedEncoder, infile: Path, outfile: Path, config: RunConfig) -> list[str]:
    return [
        "--preset",
        PLACEHOLDER_TOKEN,
        "--tile-rows",
        "2",
        "--tile-columns",
        "2",
        "--lp",
        str(config.threads),
        "-n",
        str(config.limit),
        "-b",
        str(outfile),
        "-i",
        str(infile),
    ]


_GRAMMARS: dict[EncoderFamily, Callable[[ProbedEncoder, Path, Path, RunConfig], list[str]]] = {
    EncoderFamily.AOM: _aom_args,
    EncoderFamily.RAV1E: _rav1e_args,
    EncoderFamily.SVT: _svt_args,
}


def join_tokens(tokens: list[str]) -> str:
    """Space-join tokens, dropping empty ones. No shell quoting is applied."""
    return " ".join(token for token in tokens if token)


def synthesize(encoder: ProbedEncoder, infile: Path, config: RunConfig) -> CommandTemplate:
    """Build the sweep command for one (input, encoder) pair.

    The result is a pure function of its arguments.
    """
    artifacts = artifact_names(infile, encoder.version, config)
    grammar = _GRAMMARS[encoder.family]

    tokens = [
        config.runner,
        str(encoder.path),
        *grammar(encoder, infile, artifacts.output_template, config),
        config.extra_args(encoder.family),
    ]

    return CommandTemplate(
        command=join_tokens(tokens),
        parameter=PLACEHOLDER,
        bounds=config.sweep_bounds(encoder.family),
        artifacts=artifacts,
    )
