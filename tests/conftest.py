"""Pytest fixtures for encbench tests."""

import os
import stat
import sys
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from encbench.config import RunConfig

# Store original cwd at module load time
_original_cwd = Path.cwd()

AOM_HELP = """\
Usage: aomenc <options> -o dst_filename src_filename

Options:
            --help                      Show usage options and exit
  -o <arg>, --output=<arg>              Output filename

Included encoders:

    av1    - AOMedia Project AV1 Encoder 3.6.0 (default)

        Use --codec to switch to a non-default encoder.
"""

RAV1E_HELP = """\
rav1e 0.7.1 (UNKNOWN) - AV1 video encoder

USAGE:
    rav1e [OPTIONS] <INPUT> --output <OUTPUT>

OPTIONS:
    -o, --output <OUTPUT>    Compressed AV1 in IVF video output
    -s, --speed <SPEED>      Speed level (0 is best quality, 10 is fastest)
    -y                       Overwrite output file
"""

RAV1E_HELP_NO_OVERWRITE = """\
rav1e 0.3.0 - AV1 video encoder

OPTIONS:
    -o, --output <OUTPUT>    Compressed AV1 in IVF video output
    -s, --speed <SPEED>      Speed level (0 is best quality, 10 is fastest)
"""

RAV1E_VERSION = "rav1e 0.7.1 (UNKNOWN)\n"

SVT_STDERR = (
    "Svt[info]: -------------------------------------------\n"
    "Svt[info]: SVT [version]:\tSVT-AV1 Encoder Lib v1.7.0\n"
    "Svt[info]: SVT [build]  :\tGCC 12.2.0\t 64 bit\n"
    "Svt[info]: LIB Build date: Sep 26 2023 10:00:00\n"
)

_ENCODER_SCRIPT = """\
#!/bin/sh
dir="$(dirname "$0")"
name="$(basename "$0")"
echo "$*" >> "$dir/$name.calls"
case "$1" in
  --help) cat "$dir/$name.help" 2>/dev/null ;;
  --version) cat "$dir/$name.version" 2>/dev/null ;;
  "") cat "$dir/$name.stderr" >&2 ;;
esac
exit 0
"""

_HYPERFINE_SCRIPT = r'''
import csv
import json
import os
import subprocess
import sys
from pathlib import Path

args = sys.argv[1:]
with Path(sys.argv[0] + ".calls").open("a") as log:
    log.write(json.dumps(args) + "\n")

if "--version" in args:
    print("hyperfine 1.18.0")
    sys.exit(0)

linger = os.environ.get("FAKE_HYPERFINE_LINGER")
if linger:
    # stands in for an encoder still running under hyperfine
    child = subprocess.Popen(["sleep", linger])
    Path(sys.argv[0] + ".child").write_text(str(child.pid))
    child.wait()

code = int(os.environ.get("FAKE_HYPERFINE_EXIT", "0"))
if code:
    sys.exit(code)

i = args.index("-P")
name, low, high = args[i + 1], int(args[i + 2]), int(args[i + 3])
command = args[i + 4]
print("Benchmark: " + command)


def target(flag):
    if flag not in args:
        return None
    return Path(args[args.index(flag) + 1])


results = []
for level in range(low, high + 1):
    mean = 1.0 / (level + 1)
    results.append(
        {
            "command": command.replace("{" + name + "}", str(level)),
            "mean": mean,
            "stddev": 0.01,
            "median": mean,
            "user": 0.5,
            "system": 0.125,
            "min": mean * 0.9,
            "max": mean * 1.1,
            "times": [mean, mean],
            "exit_codes": [0, 0],
            "parameters": {name: str(level)},
        }
    )

with target("--export-csv").open("w", newline="") as f:
    writer = csv.writer(f)
    keys = ["command", "mean", "stddev", "median", "user", "system", "min", "max"]
    writer.writerow([*keys, "parameter_" + name])
    for r in results:
        writer.writerow([*(r[k] for k in keys), r["parameters"][name]])

with target("--export-markdown").open("w") as f:
    f.write("| Command | Mean [s] |\n|:---|---:|\n")
    for r in results:
        f.write("| `%s` | %.3f |\n" % (r["command"], r["mean"]))

json_target = target("--export-json")
if json_target is not None:
    json_target.write_text(json.dumps({"results": results}))
'''


def _make_executable(path: Path) -> None:
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def in_temp_dir(temp_dir: Path) -> Generator[Path, None, None]:
    """Run the test from inside the temporary directory."""
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def make_encoder(temp_dir: Path) -> Callable[..., Path]:
    """Factory for fake encoder binaries with canned probe output.

    Every invocation's arguments are appended to ``<name>.calls``.
    """
    bin_dir = temp_dir / "bin"
    bin_dir.mkdir(exist_ok=True)

    def _make(
        name: str,
        *,
        help_text: str = "",
        version_text: str = "",
        stderr_text: str = "",
    ) -> Path:
        script = bin_dir / name
        _ = script.write_text(_ENCODER_SCRIPT)
        _make_executable(script)
        _ = (bin_dir / f"{name}.help").write_text(help_text)
        _ = (bin_dir / f"{name}.version").write_text(version_text)
        _ = (bin_dir / f"{name}.stderr").write_text(stderr_text)
        return script

    return _make


@pytest.fixture
def aom_encoder(make_encoder: Callable[..., Path]) -> Path:
    return make_encoder("aomenc", help_text=AOM_HELP)


@pytest.fixture
def rav1e_encoder(make_encoder: Callable[..., Path]) -> Path:
    return make_encoder("rav1e", help_text=RAV1E_HELP, version_text=RAV1E_VERSION)


@pytest.fixture
def svt_encoder(make_encoder: Callable[..., Path]) -> Path:
    return make_encoder("SvtAv1EncApp", help_text="Usage: SvtAv1EncApp", stderr_text=SVT_STDERR)


@pytest.fixture
def fake_hyperfine(temp_dir: Path) -> Path:
    """A stand-in hyperfine that writes exports for every sweep point."""
    bin_dir = temp_dir / "bin"
    bin_dir.mkdir(exist_ok=True)
    script = bin_dir / "hyperfine"
    _ = script.write_text(f"#!{sys.executable}\n{_HYPERFINE_SCRIPT}")
    _make_executable(script)
    return script


@pytest.fixture
def run_config(temp_dir: Path, fake_hyperfine: Path) -> RunConfig:
    """RunConfig writing everything under the temporary directory."""
    return RunConfig(
        limit=10,
        threads=4,
        tag="bench1",
        runs=2,
        outdir=temp_dir / "encoded",
        results_dir=temp_dir / "results",
        hyperfine=str(fake_hyperfine),
    )


@pytest.fixture
def read_calls() -> Callable[[Path], list[str]]:
    """Return the argument lines recorded by a fake binary."""

    def _read(script: Path) -> list[str]:
        calls = script.parent / f"{script.name}.calls"
        if not calls.exists():
            return []
        return calls.read_text().splitlines()

    return _read
