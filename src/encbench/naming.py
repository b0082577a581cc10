# Copyright (c) Syntropy Systems
"""Deterministic names for encoded outputs and result exports."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from encbench.errors import InvalidInputError

if TYPE_CHECKING:
    from encbench.config import RunConfig
    from encbench.probe import EncoderVersion

PLACEHOLDER = "ss"
PLACEHOLDER_TOKEN = "{" + PLACEHOLDER + "}"


@dataclass(frozen=True)
class ArtifactName:
    """Encoded-output path template and result-base name for one pair."""

    output_template: Path
    result_base: str
    results_dir: Path = Path()

    def export_path(self, extension: str) -> Path:
        """Path of a hyperfine export, e.g. ``export_path("csv")``."""
        return self.results_dir / f"{self.result_base}.{extension}"


def input_stem(infile: Path) -> str:
    """Return the file stem used in names; raises for stemless paths."""
    stem = Path(infile).stem
    if not stem or stem in (".", ".."):
        msg = f"Invalid input filename: {infile}"
        raise InvalidInputError(msg)
    return stem


def artifact_names(infile: Path, encoder: EncoderVersion, config: RunConfig) -> ArtifactName:
    """Derive the names for one (input, encoder) pair.

    The result base combines tag, family, version, input stem and frame
    limit, so distinct pairs never share a sheet or export file.
    """
    stem = input_stem(infile)
    enc = f"{encoder.family.value}-{encoder.version}"

    output_template = config.outdir / f"{stem}-{enc}-{PLACEHOLDER_TOKEN}-l{config.limit}.ivf"
    result_base = f"{config.tag}-{enc}-speed-levels-{stem}-l{config.limit}"

    return ArtifactName(
        output_template=output_template,
        result_base=result_base,
        results_dir=config.results_dir,
    )
