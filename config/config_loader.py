"""Load settings.yaml into typed dataclasses. Checks API keys at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    temperature: float = 0.8
    base_url: str | None = None


@dataclass
class PromptsConfig:
    regular: str
    final_decision: str
    lead_selection: str
    lead_selection_strict: str
    synthesis: str


@dataclass
class PersonaConfig:
    name: str
    instructions: str
    background: str
    text: str
    rival: str | None = None


@dataclass
class DefaultsConfig:
    max_turns: int
    output_dir: Path
    provider: str
    synthesizer: str
    min_delay_sec: float = 4.0
    max_delay_sec: float = 10.0
    max_final_attempts: int = 2


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    models: dict[str, ModelConfig]
    prompts: PromptsConfig
    personas: list[PersonaConfig]
    lead: PersonaConfig
    available_providers: set[str] = field(default_factory=set)


def _persona_from_raw(name: str, raw: dict) -> PersonaConfig:
    return PersonaConfig(
        name=name,
        instructions=str(raw.get("instructions", "")).strip(),
        background=str(raw["background"]),
        text=str(raw["text"]),
        rival=raw.get("rival"),
    )


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing, ValueError if the
    pacing window is inverted.
    Logs missing API keys but does not raise — callers check
    available_providers.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    defaults = DefaultsConfig(
        max_turns=int(defaults_raw["max_turns"]),
        output_dir=Path(defaults_raw["output_dir"]),
        provider=str(defaults_raw["provider"]),
        synthesizer=str(defaults_raw.get("synthesizer", defaults_raw["provider"])),
        min_delay_sec=float(defaults_raw.get("min_delay_sec", 4.0)),
        max_delay_sec=float(defaults_raw.get("max_delay_sec", 10.0)),
        max_final_attempts=int(defaults_raw.get("max_final_attempts", 2)),
    )
    if defaults.min_delay_sec > defaults.max_delay_sec:
        raise ValueError(
            f"min_delay_sec ({defaults.min_delay_sec}) exceeds max_delay_sec ({defaults.max_delay_sec})"
        )

    prompts_raw = raw["prompts"]
    prompts = PromptsConfig(
        regular=prompts_raw["regular"],
        final_decision=prompts_raw["final_decision"],
        lead_selection=prompts_raw["lead_selection"],
        lead_selection_strict=prompts_raw["lead_selection_strict"],
        synthesis=prompts_raw["synthesis"],
    )

    personas = [
        _persona_from_raw(name, persona_raw)
        for name, persona_raw in (raw.get("personas") or {}).items()
    ]
    lead_raw = dict(raw["lead"])
    lead = _persona_from_raw(str(lead_raw.pop("name")), lead_raw)

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in raw["models"].items():
        model_cfg = ModelConfig(
            name=provider_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            temperature=float(model_raw.get("temperature", 0.8)),
            base_url=model_raw.get("base_url"),
        )
        models[provider_name] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s — set %s in .env",
                provider_name,
                model_raw["api_key_env"],
            )

    return AppConfig(
        defaults=defaults,
        models=models,
        prompts=prompts,
        personas=personas,
        lead=lead,
        available_providers=available_providers,
    )
