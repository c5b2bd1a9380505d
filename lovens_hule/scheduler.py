"""Turn scheduling: who speaks next."""

import logging
import random
import re
from collections import Counter

from config.config_loader import PromptsConfig
from lovens_hule.models import DiscussionState, Persona
from lovens_hule.prompts import build_lead_prompt
from lovens_hule.providers.base import AIProvider

logger = logging.getLogger(__name__)

_STRIP_CHARS = " \t\n\"'`*.:!@"


def match_persona_name(reply: str, names: list[str]) -> str | None:
    """Map the lead's free-text reply onto one of the valid names.

    An exact (case-insensitive) match wins. Otherwise the full name that
    appears earliest in the reply. Otherwise a fragment that points at exactly
    one name: a reply that is the start of a single name or surname, or a
    first name mentioned in the reply that no other investor shares.
    """
    cleaned = reply.strip(_STRIP_CHARS).lower()
    if not cleaned:
        return None
    for name in names:
        if cleaned == name.lower():
            return name

    positions = {name: cleaned.find(name.lower()) for name in names}
    mentioned = [name for name in names if positions[name] >= 0]
    if mentioned:
        return min(mentioned, key=lambda name: positions[name])

    prefixed = [name for name in names if any(word.startswith(cleaned) for word in name.lower().split())]
    if len(prefixed) == 1:
        return prefixed[0]

    first_names = Counter(name.split()[0].lower() for name in names)
    hits = []
    for name in names:
        first = name.split()[0].lower()
        if first_names[first] > 1:
            continue
        found = re.search(rf"\b{re.escape(first)}\b", cleaned)
        if found:
            hits.append((found.start(), name))
    return min(hits)[1] if hits else None


def least_active(
    candidates: list[str],
    participation: dict[str, int],
    rng: random.Random,
) -> str | None:
    """Pick among the candidates with the fewest contributions so far."""
    if not candidates:
        return None
    fewest = min(participation.get(name, 0) for name in candidates)
    return rng.choice([name for name in candidates if participation.get(name, 0) == fewest])


class SpeakerSelector:
    """Chooses one speaker per turn.

    Regular phase: the committee lead picks, with one strict retry and a
    least-active fallback. Final phase: the undecided investor with the fewest
    final attempts, least active first.
    """

    def __init__(
        self,
        prompts: PromptsConfig,
        lead: AIProvider | None = None,
        lead_persona: Persona | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._prompts = prompts
        self._lead = lead
        self._lead_persona = lead_persona
        self._rng = rng or random.Random()

    async def select(self, state: DiscussionState) -> str | None:
        candidates = state.undecided_agents()
        if not candidates:
            return None

        participation = state.participation()
        if state.final_decision_phase:
            # everyone gets a final turn before anyone gets a second one
            fewest = min(state.final_attempts.get(name, 0) for name in candidates)
            candidates = [name for name in candidates if state.final_attempts.get(name, 0) == fewest]
            return least_active(candidates, participation, self._rng)
        if self._lead is None:
            return least_active(candidates, participation, self._rng)

        for strict in (False, True):
            choice = await self._ask_lead(state, candidates, strict)
            if choice is not None:
                return choice

        fallback = least_active(candidates, participation, self._rng)
        logger.warning("Lead gave no usable speaker; falling back to least active: %s", fallback)
        return fallback

    async def _ask_lead(self, state: DiscussionState, names: list[str], strict: bool) -> str | None:
        prompt = build_lead_prompt(state, names, self._prompts, strict=strict)
        try:
            response = await self._lead.generate(prompt, state.current_turn + 1, self._lead_persona)
        except Exception as exc:
            logger.warning("Lead selection failed (strict=%s): %s", strict, exc)
            return None

        choice = match_persona_name(response.content, names)
        logger.debug("Lead replied %r -> %s (strict=%s)", response.content, choice, strict)
        return choice
