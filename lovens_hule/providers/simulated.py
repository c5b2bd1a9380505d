"""Offline provider: canned investor lines picked at random.

Used when no API key is configured (or with --simulate). It never fails and
never touches the network.
"""

import logging
import random
import time

from lovens_hule.decisions import REJECTION_PHRASE, VALUE_ADD_MARKER
from lovens_hule.models import ModelResponse, Persona
from lovens_hule.prompts import FINAL_DECISION_HEADING, SYNTHESIS_HEADING
from lovens_hule.providers.base import AIProvider

logger = logging.getLogger(__name__)

_TEMPLATES: dict[str, tuple[str, ...]] = {
    "Jakob Risgaard": (
        "Jeg kan godt se potentialet, men jeg skal vide hvor meget I tjener på hver kunde. "
        "Og Jesper, du bliver sikkert begejstret for det internationale marked igen! 😏",
        "Jeg forstår stadig ikke helt hvordan I regner med at tjene penge - "
        "kan I forklare det så min mor kan forstå det? 🤔",
        "Nu bliver jeg lidt bekymret for jeres økonomi. Hvor længe kan I holde det her kørende? 🚨",
    ),
    "Jesper Buch": (
        "Det her er perfekt timing! Jeg ser samme trend i USA og Tyskland. "
        "Jakob bliver nok bekymret for pengene, men tænk på det internationale marked! 🌍",
        "Jeres konkurrenter er store, men de er også langsomme. Hvad er jeres hemmelige våben? 🚀",
        "Jeg tror I undervurderer markedet. Hvad er jeres plan for at vokse stort? 📈",
    ),
    "Jan Lehrmann": (
        "Jeg er lidt nervøs for jeres tal. De ser lidt for optimistiske ud for mig. "
        "Kan I vise mig noget der beviser I kan gøre det? 📊",
        "I bruger mange penge hver måned. Hvornår begynder I at tjene penge i stedet for at bruge dem? 💰",
        "Hvis det koster 1000 kr at få en kunde, skal den kunde give jer mere end 1000 kr ret hurtigt. "
        "Hvordan hænger det sammen? 📈",
    ),
    "Christian Stadil": (
        "Jeg kan virkelig mærke at I brænder for det her. Hvilke folk drømmer I om at få med på holdet? 👥",
        "I bliver nødt til at få nogle erfarne folk med om bord. Hvad lærte I sidst? 🎯",
        "Fra 5 til 50 folk er en sindssyg omstilling. Hvem skal hjælpe jer med at lede de nye folk? ⚡",
    ),
    "Tahir Siddique": (
        "Jeres budskab er lidt uklart. Kan I forklare ideen på 30 sekunder så min teenager forstår det? 🎤",
        "Hvad vil I bruge pengene til? Og vil I sælge virksomheden en dag? 💼",
        "I prøver at sige for meget på én gang - vælg tre vigtige ting og fokusér på dem. ✨",
    ),
}

_INTERACTIONS = (
    "@{name}, god pointe, men",
    "Jeg bygger videre på {name}s indsigt:",
    "{name} - jeg er helt enig, men",
    "@{name}, det rejser en anden bekymring:",
)

_PASS_LINES = (
    "Jeg tror ikke på at forretningen kan bære sig endnu.",
    "Der er for mange ubesvarede spørgsmål om økonomien.",
    "Teamet er spændende, men markedet er for lille for mig.",
)

_VALUE_ADDS = (
    "Jeg kan åbne døre til detailkæderne og hjælpe med salget.",
    "Jeg har netværket til at tage jer til Tyskland og USA.",
    "Jeg kan hjælpe med at få styr på økonomien og budgetterne.",
    "Jeg kan hjælpe jer med at rekruttere de rigtige folk.",
)


class SimulatedProvider(AIProvider):
    """Random canned replies per persona."""

    def __init__(self, rng: random.Random | None = None, interaction_probability: float = 0.5) -> None:
        self._rng = rng or random.Random()
        self._interaction_probability = interaction_probability
        self._last_speaker: str | None = None

    def name(self) -> str:
        return "simulated"

    def model_string(self) -> str:
        return "simulated"

    async def generate(
        self,
        prompt: str,
        round_number: int,
        persona: Persona | None = None,
    ) -> ModelResponse:
        start = time.monotonic()
        if prompt.startswith(SYNTHESIS_HEADING):
            content = self._memo()
        elif persona is None:
            content = "OK"
        elif prompt.startswith(FINAL_DECISION_HEADING):
            content = self._final_decision()
        else:
            content = self._line(persona)
            self._last_speaker = persona.name

        logger.debug("Simulated turn %d for %s", round_number, persona.name if persona else "-")
        return ModelResponse(
            provider=self.name(),
            model=self.model_string(),
            round_number=round_number,
            content=content,
            latency_sec=time.monotonic() - start,
            token_count=None,
        )

    def _line(self, persona: Persona) -> str:
        templates = _TEMPLATES.get(persona.name) or (
            f"{persona.name} har nogle spørgsmål til pitchen...",
            f"{persona.name} deler sine tanker om muligheden...",
        )
        line = self._rng.choice(templates)
        last = self._last_speaker
        if last and last != persona.name and self._rng.random() < self._interaction_probability:
            prefix = self._rng.choice(_INTERACTIONS).format(name=last)
            return f"{prefix} {line[0].lower()}{line[1:]}"
        return line

    def _final_decision(self) -> str:
        if self._rng.random() < 0.5:
            return f"{self._rng.choice(_PASS_LINES)} {REJECTION_PHRASE}."
        equity = self._rng.choice((10, 15, 20, 25, 30))
        amount = self._rng.choice((250_000, 500_000, 750_000, 1_000_000))
        amount_text = f"{amount:,}".replace(",", ".")
        return (
            f"Jeg tilbyder {equity}% for {amount_text} kr. "
            f"{VALUE_ADD_MARKER} {self._rng.choice(_VALUE_ADDS)}"
        )

    def _memo(self) -> str:
        recommendation = self._rng.choice(("PASS", "OVERVEJ", "INVESTÉR"))
        return (
            "# Investment Committee Memo\n\n"
            "## Executive Summary\n"
            "Panelet har diskuteret pitchen grundigt og set både styrker og risici.\n\n"
            f"## Investment Anbefaling: **{recommendation}**\n"
        )
