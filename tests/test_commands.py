# Copyright (c) Syntropy Systems
"""Tests for command synthesis."""

from pathlib import Path

import pytest

from encbench.commands import join_tokens, synthesize
from encbench.config import RunConfig, SweepBounds
from encbench.probe import EncoderFamily, EncoderVersion, ProbedEncoder


def _encoder(family: EncoderFamily, version: str = "1.0", overwrite: bool = False) -> ProbedEncoder:
    return ProbedEncoder(
        path=Path(f"/opt/bin/{family.value}enc"),
        version=EncoderVersion(family, version),
        supports_overwrite=overwrite,
    )


@pytest.fixture
def config() -> RunConfig:
    return RunConfig(
        tag="bench1",
        limit=10,
        threads=8,
        outdir=Path("/enc"),
        results_dir=Path("/res"),
    )


class TestFamilyGrammars:
    """Tests for each encoder's argument layout."""

    def test_aom(self, config):
        template = synthesize(_encoder(EncoderFamily.AOM, "3.6.0"), Path("clip.y4m"), config)
        assert template.command == (
            "/opt/bin/aomenc --tile-rows=2 --tile-columns=2 --cpu-used={ss} "
            "--threads=8 --limit=10 -o /enc/clip-aom-3.6.0-{ss}-l10.ivf clip.y4m"
        )
        assert template.bounds == SweepBounds(0, 8)

    def test_rav1e_with_overwrite(self, config):
        template = synthesize(
            _encoder(EncoderFamily.RAV1E, "0.7.1", overwrite=True), Path("clip.y4m"), config
        )
        assert template.command == (
            "/opt/bin/rav1eenc --tiles 16 --threads 8 -l 10 -s {ss} "
            "-o /enc/clip-rav1e-0.7.1-{ss}-l10.ivf clip.y4m -y"
        )
        assert template.bounds == SweepBounds(0, 10)

    def test_rav1e_without_overwrite(self, config):
        template = synthesize(
            _encoder(EncoderFamily.RAV1E, "0.3.0", overwrite=False), Path("clip.y4m"), config
        )
        assert not template.command.endswith("-y")
        assert " -y" not in template.command

    def test_rav1e_tile_count(self):
        config = RunConfig(tag="t", outdir=Path("/enc"), rav1e_tiles=4)
        template = synthesize(_encoder(EncoderFamily.RAV1E), Path("clip.y4m"), config)
        assert "--tiles 4 " in template.command

    def test_svt(self, config):
        template = synthesize(_encoder(EncoderFamily.SVT, "v1.7.0"), Path("clip.y4m"), config)
        assert template.command == (
            "/opt/bin/svtenc --preset {ss} --tile-rows 2 --tile-columns 2 --lp 8 "
            "-n 10 -b /enc/clip-svt-v1.7.0-{ss}-l10.ivf -i clip.y4m"
        )
        assert template.bounds == SweepBounds(0, 8)


class TestRunnerAndExtras:
    """Tests for the runner prefix and per-family extra arguments."""

    def test_runner_prefix(self):
        config = RunConfig(tag="t", outdir=Path("/enc"), runner="ssh bench-host")
        template = synthesize(_encoder(EncoderFamily.AOM), Path("clip.y4m"), config)
        assert template.command.startswith("ssh bench-host /opt/bin/aomenc ")

    @pytest.mark.parametrize(
        ("family", "field"),
        [
            (EncoderFamily.AOM, "extra_aom"),
            (EncoderFamily.RAV1E, "extra_rav1e"),
            (EncoderFamily.SVT, "extra_svt"),
        ],
    )
    def test_extras_appended_to_own_family(self, family, field):
        config = RunConfig(tag="t", outdir=Path("/enc"), **{field: "--foo 1 --bar"})
        template = synthesize(_encoder(family), Path("clip.y4m"), config)
        assert template.command.endswith(" --foo 1 --bar")

    def test_extras_not_leaked_to_other_families(self):
        config = RunConfig(tag="t", outdir=Path("/enc"), extra_svt="--keyint 240")
        template = synthesize(_encoder(EncoderFamily.AOM), Path("clip.y4m"), config)
        assert "--keyint" not in template.command

    def test_no_stray_whitespace(self, config):
        template = synthesize(_encoder(EncoderFamily.SVT), Path("clip.y4m"), config)
        assert template.command == template.command.strip()
        assert "  " not in template.command


class TestTemplateProperties:
    """Tests for properties every template shares."""

    @pytest.mark.parametrize("family", list(EncoderFamily))
    def test_pure(self, config, family):
        encoder = _encoder(family, overwrite=True)
        first = synthesize(encoder, Path("clip.y4m"), config)
        second = synthesize(encoder, Path("clip.y4m"), config)
        assert first == second
        assert first.command == second.command

    @pytest.mark.parametrize("family", list(EncoderFamily))
    def test_placeholder_in_speed_and_output(self, config, family):
        template = synthesize(_encoder(family), Path("clip.y4m"), config)
        assert template.parameter == "ss"
        assert template.command.count("{ss}") == 2
        assert "{ss}" in str(template.artifacts.output_template)

    def test_join_tokens_drops_empty(self):
        assert join_tokens(["", "a", "", "b c", ""]) == "a b c"
