"""Shared pytest fixtures."""

import random
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, DefaultsConfig, ModelConfig, PersonaConfig, PromptsConfig
from lovens_hule.discussion import PacingConfig
from lovens_hule.models import DiscussionState, GroupMessage, ModelResponse, Persona, Theme
from lovens_hule.personas import PersonaRegistry
from lovens_hule.prompts import FixedPromptStyle
from lovens_hule.providers.base import AIProvider


def make_response(content: str, provider: str = "mock", round_number: int = 1) -> ModelResponse:
    return ModelResponse(
        provider=provider,
        model="mock-model",
        round_number=round_number,
        content=content,
        latency_sec=0.1,
        token_count=10,
    )


def make_persona(name: str, rival: str | None = None) -> Persona:
    return Persona(
        name=name,
        instructions=f"Du er {name}.",
        theme=Theme(background="#FFFFFF", text="#000000"),
        rival=rival,
    )


LEAD = Persona(
    name="Investment Committee Lead",
    instructions="Du leder komitéen.",
    theme=Theme(background="#F6F3F8", text="#8A67AB"),
)


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="openai",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=400,
    )


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        regular=(
            "REGULAR {persona} turn {turn}/{max_turns}\nPitch: {pitch}\n"
            "Recent:\n{recent_messages}\n{length_guidance}\n{flavor_guidance}"
        ),
        final_decision=(
            "FINAL {persona}\nPitch: {pitch}\nRecent:\n{recent_messages}\n"
            "End with '{rejection_phrase}' or '{offer_example}' then '{value_add_marker}'."
        ),
        lead_selection=(
            "LEAD\nPitch: {pitch}\nRecent:\n{recent_messages}\n"
            "Tally:\n{participation}\nNames: {names}"
        ),
        lead_selection_strict="STRICT names only: {names}",
        synthesis=(
            "SYNTH turns={turns} invest={invest_count} pass={pass_count}\n"
            "Pitch: {pitch}\nTranscript:\n{transcript}\nDecisions:\n{decisions}"
        ),
    )


@pytest.fixture
def sample_defaults_config(tmp_path: Path) -> DefaultsConfig:
    return DefaultsConfig(
        max_turns=6,
        output_dir=tmp_path / "output",
        provider="openai",
        synthesizer="openai",
        min_delay_sec=0,
        max_delay_sec=0,
    )


@pytest.fixture
def sample_app_config(
    sample_defaults_config: DefaultsConfig,
    sample_prompts_config: PromptsConfig,
) -> AppConfig:
    model_cfg = ModelConfig(
        name="openai",
        sdk="openai",
        model="gpt-4.1-mini",
        api_key_env="OPENAI_API_KEY",
        timeout_sec=60,
        max_tokens=400,
    )
    return AppConfig(
        defaults=sample_defaults_config,
        models={"openai": model_cfg},
        prompts=sample_prompts_config,
        personas=[
            PersonaConfig("Jakob Risgaard", "Du er Jakob.", "#F3EEEE", "#976D57", rival="Jesper Buch"),
            PersonaConfig("Jesper Buch", "Du er Jesper.", "#F8ECDF", "#CC782F", rival="Jakob Risgaard"),
        ],
        lead=PersonaConfig("Investment Committee Lead", "Du leder.", "#F6F3F8", "#8A67AB"),
        available_providers={"openai"},
    )


@pytest.fixture
def registry() -> PersonaRegistry:
    return PersonaRegistry(
        personas=[
            make_persona("Jakob Risgaard", rival="Jesper Buch"),
            make_persona("Jesper Buch", rival="Jakob Risgaard"),
            make_persona("Jan Lehrmann"),
        ],
        lead=LEAD,
    )


@pytest.fixture
def ab_registry() -> PersonaRegistry:
    return PersonaRegistry(personas=[make_persona("A"), make_persona("B")], lead=LEAD)


@pytest.fixture
def sample_state() -> DiscussionState:
    state = DiscussionState(
        pitch="Vi sælger abonnementer på hundemad til travle familier.",
        active_agents=["Jakob Risgaard", "Jesper Buch", "Jan Lehrmann"],
        max_turns=6,
    )
    state.current_turn = 2
    state.append(GroupMessage(sender="Jakob Risgaard", message="Hvordan tjener I penge?", turn=1))
    state.append(GroupMessage(sender="Jesper Buch", message="Tænk på Tyskland, Jakob!", turn=2))
    return state


@pytest.fixture
def fixed_style() -> FixedPromptStyle:
    return FixedPromptStyle(length="LENGTH", flavor="FLAVOR")


@pytest.fixture
def no_pacing() -> PacingConfig:
    return PacingConfig(0.0, 0.0)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, provider_name: str = "mock", response_content: str = "Mock response") -> None:
        self._name = provider_name
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=make_response(response_content, provider=provider_name)
        )

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def generate(self, prompt: str, round_number: int, persona: Persona | None = None) -> ModelResponse:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return make_response(self._response_content, provider=self._name, round_number=round_number)


def scripted_provider(
    reply: Callable[[str, int, Persona | None], str],
    provider_name: str = "scripted",
) -> MockProvider:
    """MockProvider whose reply is computed from (prompt, turn, persona).

    `reply` may raise to simulate a failing call.
    """
    provider = MockProvider(provider_name)

    async def _generate(prompt: str, round_number: int, persona: Persona | None = None) -> ModelResponse:
        return make_response(reply(prompt, round_number, persona), provider=provider_name, round_number=round_number)

    provider.generate = AsyncMock(side_effect=_generate)
    return provider


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()
