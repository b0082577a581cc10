# Copyright (c) Syntropy Systems
"""Encoder identification by probing the binary's own output."""
from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import ClassVar

from typing_extensions import override

from encbench.errors import ProbeError, SpawnError

logger = logging.getLogger(__name__)


class EncoderFamily(str, Enum):
    """Supported encoder command grammars."""

    AOM = "aom"
    RAV1E = "rav1e"
    SVT = "svt"


@dataclass(frozen=True)
class EncoderVersion:
    """Family and version extracted from a probe."""

    family: EncoderFamily
    version: str


@dataclass(frozen=True)
class ProbedEncoder:
    """An encoder binary together with everything learned by probing it."""

    path: Path
    version: EncoderVersion
    supports_overwrite: bool = False

    @property
    def family(self) -> EncoderFamily:
        return self.version.family


def run_probe(
    encoder: Path,
    args: list[str],
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run an encoder with probe arguments and capture both streams.

    Raises SpawnError if the binary cannot be started.
    """
    argv = [str(encoder), *args]
    logger.debug("Probing %s", " ".join(argv))
    try:
        return subprocess.run(  # noqa: S603
            argv,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        msg = f"Probe of {encoder} timed out after {timeout}s"
        raise SpawnError(msg) from e
    except OSError as e:
        msg = f"Cannot run the encoder {encoder}: {e}"
        raise SpawnError(msg) from e


class ProbeStrategy:
    """How one encoder family reveals its version.

    Subclasses declare the probe arguments, which captured stream to read,
    and how to pull the version token out of it.
    """

    family: ClassVar[EncoderFamily]
    args: ClassVar[tuple[str, ...]] = ()
    stream: ClassVar[str] = "stdout"

    def parse(self, output: str) -> str | None:
        raise NotImplementedError

    def probe(self, encoder: Path, timeout: float | None = None) -> EncoderVersion | None:
        result = run_probe(encoder, list(self.args), timeout=timeout)
        output = result.stdout if self.stream == "stdout" else result.stderr
        version = self.parse(output or "")
        if version is None:
            return None
        return EncoderVersion(self.family, version)


class AomProbe(ProbeStrategy):
    family = EncoderFamily.AOM
    args = ("--help",)
    stream = "stdout"

    pattern: ClassVar[re.Pattern[str]] = re.compile(
        r"av1    - AOMedia Project AV1 Encoder (\S+) "
    )

    @override
    def parse(self, output: str) -> str | None:
        match = self.pattern.search(output)
        return match.group(1) if match else None


class Rav1eProbe(ProbeStrategy):
    """rav1e prints ``rav1e <nominal> (<commit>)``.

    Builds without git metadata report the commit as UNKNOWN, in which case
    the nominal version is used. Older releases print only the nominal token.
    """

    family = EncoderFamily.RAV1E
    args = ("--version",)
    stream = "stdout"

    pattern: ClassVar[re.Pattern[str]] = re.compile(r"rav1e (\S+) \((\S+)\)")
    legacy_pattern: ClassVar[re.Pattern[str]] = re.compile(r"rav1e (\S+)")

    @override
    def parse(self, output: str) -> str | None:
        match = self.pattern.search(output)
        if match:
            nominal, specific = match.group(1), match.group(2)
            return nominal if specific == "UNKNOWN" else specific
        match = self.legacy_pattern.search(output)
        return match.group(1) if match else None


class SvtProbe(ProbeStrategy):
    family = EncoderFamily.SVT
    args = ()
    stream = "stderr"

    pattern: ClassVar[re.Pattern[str]] = re.compile(
        r"SVT \[version\]:\s+SVT-AV1 Encoder Lib (\S+)\s"
    )

    @override
    def parse(self, output: str) -> str | None:
        match = self.pattern.search(output)
        return match.group(1) if match else None


# Families are tried in this order; the first match wins
PROBE_ORDER: tuple[ProbeStrategy, ...] = (AomProbe(), Rav1eProbe(), SvtProbe())

_OVERWRITE_OPTION = re.compile(r"^\s*-y", re.MULTILINE)


def probe_version(
    encoder: Path,
    strategies: tuple[ProbeStrategy, ...] = PROBE_ORDER,
    timeout: float | None = None,
) -> EncoderVersion:
    """Classify an encoder binary and extract its version.

    Raises ProbeError if no family matches, SpawnError if it cannot run.
    """
    for strategy in strategies:
        version = strategy.probe(encoder, timeout=timeout)
        if version is not None:
            logger.info(
                "Identified %s as %s %s", encoder, version.family.value, version.version
            )
            return version

    msg = f"Cannot probe the encoder {encoder}: no known version banner"
    raise ProbeError(msg)


def supports_overwrite(encoder: Path, timeout: float | None = None) -> bool:
    """Check whether the encoder's help text advertises a ``-y`` option."""
    result = run_probe(encoder, ["--help"], timeout=timeout)
    return bool(_OVERWRITE_OPTION.search(result.stdout or ""))


class EncoderProber:
    """Probes encoders, remembering results per binary for one invocation."""

    def __init__(
        self,
        strategies: tuple[ProbeStrategy, ...] = PROBE_ORDER,
        timeout: float | None = None,
    ) -> None:
        self.strategies = strategies
        self.timeout = timeout
        self._cache: dict[Path, ProbedEncoder] = {}

    def probe(self, encoder: Path) -> ProbedEncoder:
        """Identify an encoder and, for rav1e, its overwrite capability."""
        key = encoder.resolve()
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        version = probe_version(encoder, self.strategies, timeout=self.timeout)
        overwrite = False
        if version.family is EncoderFamily.RAV1E:
            overwrite = supports_overwrite(encoder, timeout=self.timeout)
            logger.debug("%s overwrite flag: %s", encoder, overwrite)

        probed = ProbedEncoder(path=encoder, version=version, supports_overwrite=overwrite)
        self._cache[key] = probed
        return probed
