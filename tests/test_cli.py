"""Tests for provider selection and the click entry point in lovens_hule/cli.py."""

import random
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from click.testing import CliRunner

from lovens_hule.cli import _build_provider, _check_providers, _select_providers, main
from lovens_hule.providers.base import ProviderError
from lovens_hule.providers.openai_provider import OpenAIProvider
from lovens_hule.providers.simulated import SimulatedProvider
from tests.conftest import MockProvider


@pytest.fixture
def openai_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")


def test_build_provider_without_key_returns_none(sample_app_config):
    sample_app_config.available_providers = set()
    assert _build_provider(sample_app_config, "openai") is None


def test_build_provider_unknown_sdk(sample_app_config, openai_key):
    sample_app_config.models["openai"].sdk = "carrier-pigeon"
    assert _build_provider(sample_app_config, "openai") is None


def test_build_provider_openai(sample_app_config, openai_key):
    provider = _build_provider(sample_app_config, "openai")
    assert isinstance(provider, OpenAIProvider)
    assert provider.name() == "openai"


def test_select_providers_simulate(sample_app_config):
    provider, lead, synth = _select_providers(sample_app_config, "openai", "openai", True, random.Random(0))
    assert isinstance(provider, SimulatedProvider)
    assert lead is None
    assert synth is provider


def test_select_providers_falls_back_to_simulated(sample_app_config):
    sample_app_config.available_providers = set()
    provider, lead, synth = _select_providers(sample_app_config, "openai", "openai", False, random.Random(0))
    assert isinstance(provider, SimulatedProvider)
    assert lead is None


def test_select_providers_real_provider_leads(sample_app_config, openai_key):
    provider, lead, synth = _select_providers(sample_app_config, "openai", "openai", False, random.Random(0))
    assert isinstance(provider, OpenAIProvider)
    assert lead is provider
    assert synth is provider


def test_select_providers_unavailable_synthesizer_reuses_provider(sample_app_config, openai_key):
    provider, _, synth = _select_providers(sample_app_config, "openai", "claude", False, random.Random(0))
    assert synth is provider


def test_main_simulated_run_saves_transcript(tmp_path: Path):
    runner = CliRunner()
    result = runner.invoke(
        main,
        [
            "Vi sælger abonnementer på hundemad.",
            "--simulate",
            "--no-delay",
            "--seed", "3",
            "--turns", "4",
            "--investors", "Jakob Risgaard,Jan Lehrmann",
            "--output", str(tmp_path),
        ],
    )
    assert result.exit_code == 0, result.output
    saved = list(tmp_path.glob("*.md"))
    assert len(saved) == 1
    content = saved[0].read_text(encoding="utf-8")
    assert "## Beslutninger" in content
    assert "Jakob Risgaard" in content
    assert "- **Jesper Buch**" not in content


def test_main_reads_pitch_file(tmp_path: Path):
    pitch = tmp_path / "pitch.md"
    pitch.write_text("---\nturns: 2\ninvestors: Tahir Siddique\n---\nEn app til padel-booking.\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(
        main,
        ["--file", str(pitch), "--simulate", "--no-delay", "--seed", "1", "--output", str(tmp_path / "out")],
    )
    assert result.exit_code == 0, result.output
    saved = list((tmp_path / "out").glob("*.md"))
    assert len(saved) == 1
    assert saved[0].name.endswith("_pitch.md")
    content = saved[0].read_text(encoding="utf-8")
    assert "- **Tahir Siddique**" in content
    assert "**Source:** " + str(pitch) in content


@pytest.mark.parametrize("value", ["-2", "abc", "0"])
def test_main_rejects_invalid_frontmatter_turns(tmp_path: Path, value):
    pitch = tmp_path / "pitch.md"
    pitch.write_text(f"---\nturns: {value}\n---\nEn app til padel-booking.\n", encoding="utf-8")
    result = CliRunner().invoke(
        main,
        ["--file", str(pitch), "--simulate", "--no-delay", "--output", str(tmp_path / "out")],
    )
    assert result.exit_code == 1
    assert "Pitch file error" in result.output
    assert not (tmp_path / "out").exists()


def test_main_requires_pitch():
    result = CliRunner().invoke(main, ["--simulate"])
    assert result.exit_code == 1


def test_main_rejects_zero_turns():
    result = CliRunner().invoke(main, ["pitch", "--turns", "0", "--simulate"])
    assert result.exit_code == 2


def test_check_providers_exits_when_user_declines(monkeypatch):
    broken = MockProvider("openai")
    broken.generate = AsyncMock(side_effect=ProviderError("openai", "401 Unauthorized"))
    monkeypatch.setattr("lovens_hule.cli.click.confirm", lambda *args, **kwargs: False)
    with pytest.raises(SystemExit):
        _check_providers({"investors": broken})


def test_check_providers_passes_quietly():
    _check_providers({"investors": MockProvider("openai", "OK")})
