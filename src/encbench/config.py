# Copyright (c) Syntropy Systems
"""Configuration management for encbench."""
from __future__ import annotations

import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

import yaml

from encbench.errors import InvalidInputError
from encbench.probe import EncoderFamily

CONFIG_FILENAME = "encbench.yaml"
DEFAULT_OUTDIR = "~/Encoded"
DEFAULT_PROBE_TIMEOUT = 30.0


@dataclass(frozen=True)
class SweepBounds:
    """Inclusive integer range swept by the measurement engine."""

    low: int
    high: int


# Speed/preset ranges each encoder accepts
SWEEP_BOUNDS: dict[EncoderFamily, SweepBounds] = {
    EncoderFamily.AOM: SweepBounds(0, 8),
    EncoderFamily.RAV1E: SweepBounds(0, 10),
    EncoderFamily.SVT: SweepBounds(0, 8),
}


def default_tag() -> str:
    """Build the default descriptive tag from the host name and machine."""
    uname = platform.uname()
    return f"{uname.node}-{uname.machine}"


@dataclass(frozen=True)
class RunConfig:
    """Settings resolved once per invocation and shared by every pair."""

    limit: int = 10
    threads: int = 16
    tag: str = field(default_factory=default_tag)
    runs: int = 2
    outdir: Path = field(default_factory=lambda: Path(DEFAULT_OUTDIR).expanduser())
    results_dir: Path = field(default_factory=Path)
    extra_aom: str = ""
    extra_rav1e: str = ""
    extra_svt: str = ""
    runner: str = ""
    rav1e_tiles: int = 16
    show_output: bool = False
    export_json: bool = True
    hyperfine: str = "hyperfine"
    timeout: float | None = None
    probe_timeout: float | None = DEFAULT_PROBE_TIMEOUT
    log_dir: Path | None = None

    def extra_args(self, family: EncoderFamily) -> str:
        """Return the verbatim extra arguments for an encoder family."""
        return {
            EncoderFamily.AOM: self.extra_aom,
            EncoderFamily.RAV1E: self.extra_rav1e,
            EncoderFamily.SVT: self.extra_svt,
        }[family]

    def sweep_bounds(self, family: EncoderFamily) -> SweepBounds:
        """Return the fixed sweep range for an encoder family."""
        return SWEEP_BOUNDS[family]


@dataclass
class BenchDefaults:
    """Defaults read from encbench.yaml; unset fields fall back to RunConfig."""

    limit: int | None = None
    threads: int | None = None
    tag: str | None = None
    runs: int | None = None
    outdir: str | None = None
    results_dir: str | None = None
    extra_aom: str | None = None
    extra_rav1e: str | None = None
    extra_svt: str | None = None
    runner: str | None = None
    rav1e_tiles: int | None = None
    hyperfine: str | None = None
    log_dir: str | None = None
    timeout: float | None = None
    probe_timeout: float | None = None


_INT_FIELDS = ("limit", "threads", "runs", "rav1e_tiles")
_STR_FIELDS = (
    "tag",
    "outdir",
    "results_dir",
    "extra_aom",
    "extra_rav1e",
    "extra_svt",
    "runner",
    "hyperfine",
    "log_dir",
)
_FLOAT_FIELDS = ("timeout", "probe_timeout")


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find the nearest encbench.yaml by walking up from start_path.

    Falls back to ~/.encbench/config.yaml. Returns None if neither exists.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current == current.parent:
            break
        current = current.parent

    global_config = get_global_config_dir() / "config.yaml"
    if global_config.is_file():
        return global_config

    return None


def get_global_config_dir() -> Path:
    """Get the global encbench config directory (~/.encbench)."""
    return Path.home() / ".encbench"


def load_config(config_path: Path | None = None) -> BenchDefaults:
    """Load defaults from an explicit file or the nearest encbench.yaml.

    Values of the wrong type are ignored.
    """
    defaults = BenchDefaults()

    if config_path is None:
        config_path = find_config_file()

    if config_path is None or not config_path.exists():
        return defaults

    with config_path.open() as f:
        data = cast("dict[str, object]", yaml.safe_load(f) or {})

    for name in _INT_FIELDS:
        value = data.get(name)
        if isinstance(value, int) and not isinstance(value, bool):
            setattr(defaults, name, value)
    for name in _STR_FIELDS:
        value = data.get(name)
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            setattr(defaults, name, str(value))
    for name in _FLOAT_FIELDS:
        value = data.get(name)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            setattr(defaults, name, float(value))

    return defaults


def resolve_run_config(
    defaults: BenchDefaults,
    *,
    limit: int | None = None,
    threads: int | None = None,
    tag: str | None = None,
    runs: int | None = None,
    outdir: Path | None = None,
    results_dir: Path | None = None,
    extra_aom: str | None = None,
    extra_rav1e: str | None = None,
    extra_svt: str | None = None,
    runner: str | None = None,
    rav1e_tiles: int | None = None,
    hyperfine: str | None = None,
    timeout: float | None = None,
    probe_timeout: float | None = None,
    log_dir: Path | None = None,
    show_output: bool = False,
    export_json: bool = True,
) -> RunConfig:
    """Merge explicit values over file defaults over built-in defaults.

    Explicit values come from CLI flags or their environment variables.
    Raises InvalidInputError for a timeout that is not positive.
    """
    base = RunConfig()

    def pick(explicit, from_file, builtin):
        if explicit is not None:
            return explicit
        if from_file is not None:
            return from_file
        return builtin

    outdir_value = pick(
        outdir,
        Path(defaults.outdir) if defaults.outdir is not None else None,
        base.outdir,
    )
    results_value = pick(
        results_dir,
        Path(defaults.results_dir) if defaults.results_dir is not None else None,
        base.results_dir,
    )

    log_value = pick(
        log_dir,
        Path(defaults.log_dir) if defaults.log_dir is not None else None,
        base.log_dir,
    )
    timeout_value = pick(timeout, defaults.timeout, base.timeout)
    probe_timeout_value = pick(probe_timeout, defaults.probe_timeout, base.probe_timeout)
    for name, seconds in (("timeout", timeout_value), ("probe timeout", probe_timeout_value)):
        if seconds is not None and not seconds > 0:
            msg = f"The {name} must be a positive number of seconds, got {seconds}"
            raise InvalidInputError(msg)

    return RunConfig(
        limit=pick(limit, defaults.limit, base.limit),
        threads=pick(threads, defaults.threads, base.threads),
        tag=pick(tag, defaults.tag, base.tag),
        runs=pick(runs, defaults.runs, base.runs),
        outdir=outdir_value.expanduser(),
        results_dir=results_value.expanduser(),
        extra_aom=pick(extra_aom, defaults.extra_aom, base.extra_aom),
        extra_rav1e=pick(extra_rav1e, defaults.extra_rav1e, base.extra_rav1e),
        extra_svt=pick(extra_svt, defaults.extra_svt, base.extra_svt),
        runner=pick(runner, defaults.runner, base.runner),
        rav1e_tiles=pick(rav1e_tiles, defaults.rav1e_tiles, base.rav1e_tiles),
        show_output=show_output,
        export_json=export_json,
        hyperfine=pick(hyperfine, defaults.hyperfine, base.hyperfine),
        timeout=timeout_value,
        probe_timeout=probe_timeout_value,
        log_dir=log_value.expanduser() if log_value is not None else None,
    )
