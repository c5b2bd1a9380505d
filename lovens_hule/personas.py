"""Persona registry: the fixed panel of investors plus the committee lead."""

import logging
from collections.abc import Iterable
from types import MappingProxyType

from config.config_loader import AppConfig, PersonaConfig
from lovens_hule.models import NEUTRAL_THEME, Persona, Theme

logger = logging.getLogger(__name__)


def persona_from_config(cfg: PersonaConfig) -> Persona:
    return Persona(
        name=cfg.name,
        instructions=cfg.instructions,
        theme=Theme(background=cfg.background, text=cfg.text),
        rival=cfg.rival,
    )


class PersonaRegistry:
    """Read-only table of personas, built once at startup."""

    def __init__(self, personas: Iterable[Persona], lead: Persona) -> None:
        table: dict[str, Persona] = {}
        for persona in personas:
            if persona.name in table:
                raise ValueError(f"Duplicate persona: {persona.name}")
            table[persona.name] = persona
        self._personas = MappingProxyType(table)
        self._lead = lead

    @classmethod
    def from_config(cls, config: AppConfig) -> "PersonaRegistry":
        return cls(
            personas=[persona_from_config(p) for p in config.personas],
            lead=persona_from_config(config.lead),
        )

    @property
    def lead(self) -> Persona:
        return self._lead

    def names(self) -> list[str]:
        return list(self._personas)

    def get(self, name: str) -> Persona | None:
        return self._personas.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._personas

    def __len__(self) -> int:
        return len(self._personas)

    def theme_for(self, name: str) -> Theme:
        if name == self._lead.name:
            return self._lead.theme
        persona = self._personas.get(name)
        return persona.theme if persona else NEUTRAL_THEME

    def resolve(self, requested: list[str] | None = None) -> list[Persona]:
        """Return the active panel for a discussion.

        None means the whole registry. Unknown names are dropped, not rejected.
        """
        if requested is None:
            return list(self._personas.values())

        active: list[Persona] = []
        unknown: list[str] = []
        for raw_name in requested:
            name = raw_name.strip()
            persona = self._personas.get(name)
            if persona is None:
                unknown.append(raw_name)
            elif persona not in active:
                active.append(persona)

        if unknown:
            logger.warning("Ignoring unknown investors: %s", ", ".join(unknown))
        return active
