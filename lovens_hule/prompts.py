"""Prompt construction for investor turns, speaker selection and synthesis.

Templates live in settings.yaml; this module only fills them. The styling
strategy (reply length, banter, @-mentions) is pluggable so tests can pin the
exact prompt text.
"""

import random
from typing import Protocol

from config.config_loader import PromptsConfig
from lovens_hule.decisions import (
    OFFER_EXAMPLE,
    REJECTION_PHRASE,
    VALUE_ADD_MARKER,
    format_decisions_summary,
)
from lovens_hule.models import INVEST, DiscussionState, Persona

FINAL_DECISION_HEADING = "## ENDELIG BESLUTNING"
LEAD_SELECTION_HEADING = "## VÆLG NÆSTE TALER"
SYNTHESIS_HEADING = "## INVESTMENT MEMO"

PITCH_EXCERPT_CHARS = 1500
LEAD_PITCH_EXCERPT_CHARS = 300
SYNTHESIS_PITCH_EXCERPT_CHARS = 2000
RECENT_MESSAGE_COUNT = 6
LEAD_RECENT_MESSAGE_COUNT = 4
ADDRESSED_LOOKBACK = 3
SYNTHESIS_TRANSCRIPT_TAIL = 12

DIRECT_REPLY_GUIDANCE = (
    "Du er lige blevet spurgt direkte. Svar kort og præcist på det du blev spurgt om (1-2 sætninger)."
)
LENGTH_BUCKETS = (
    "Svar meget kort, højst én sætning.",
    "Svar kort, 1-2 sætninger.",
    "Svar med 2-4 sætninger.",
    "Uddyb dit synspunkt i et lidt længere indlæg på 4-6 sætninger.",
)
_LENGTH_WEIGHTS = (2, 4, 3, 1)
_MENTION_PROBABILITY = 0.4


def truncate(text: str, limit: int) -> str:
    text = text.strip()
    return text if len(text) <= limit else text[:limit].rstrip() + "..."


def format_recent_messages(state: DiscussionState, count: int) -> str:
    recent = state.recent_messages(count)
    if not recent:
        return "(ingen beskeder endnu - du starter diskussionen)"
    return "\n".join(f"{msg.sender}: {msg.message}" for msg in recent)


def was_addressed(persona: Persona, state: DiscussionState) -> bool:
    """Did someone else name this persona in the last few messages?"""
    return any(
        msg.sender != persona.name and msg.mentions(persona)
        for msg in state.recent_messages(ADDRESSED_LOOKBACK)
    )


class PromptStyle(Protocol):
    def length_guidance(self, persona: Persona, state: DiscussionState) -> str: ...

    def flavor_guidance(self, persona: Persona, state: DiscussionState) -> str: ...


class RandomPromptStyle:
    """Varies reply length and adds banter so the chat reads less mechanically."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def length_guidance(self, persona: Persona, state: DiscussionState) -> str:
        if was_addressed(persona, state):
            return DIRECT_REPLY_GUIDANCE
        return self._rng.choices(LENGTH_BUCKETS, weights=_LENGTH_WEIGHTS, k=1)[0]

    def flavor_guidance(self, persona: Persona, state: DiscussionState) -> str:
        recent = state.recent_messages(ADDRESSED_LOOKBACK)
        rival = persona.rival
        if rival and rival in state.active_agents and any(m.sender == rival for m in recent):
            return f"{rival} har lige sagt noget - giv ham et venligt stik tilbage, men hold dig til sagen."

        others = [m.sender for m in recent if m.sender != persona.name]
        if others and self._rng.random() < _MENTION_PROBABILITY:
            return f"Henvend dig gerne direkte til @{others[-1]}."
        return ""


class FixedPromptStyle:
    """Deterministic styling."""

    def __init__(self, length: str = LENGTH_BUCKETS[1], flavor: str = "") -> None:
        self.length = length
        self.flavor = flavor

    def length_guidance(self, persona: Persona, state: DiscussionState) -> str:
        return self.length

    def flavor_guidance(self, persona: Persona, state: DiscussionState) -> str:
        return self.flavor


def build_regular_prompt(
    persona: Persona,
    state: DiscussionState,
    prompts: PromptsConfig,
    style: PromptStyle,
) -> str:
    return prompts.regular.format(
        persona=persona.name,
        pitch=truncate(state.pitch, PITCH_EXCERPT_CHARS),
        turn=state.current_turn,
        max_turns=state.max_turns,
        recent_messages=format_recent_messages(state, RECENT_MESSAGE_COUNT),
        length_guidance=style.length_guidance(persona, state),
        flavor_guidance=style.flavor_guidance(persona, state),
    )


def build_final_decision_prompt(
    persona: Persona,
    state: DiscussionState,
    prompts: PromptsConfig,
) -> str:
    body = prompts.final_decision.format(
        persona=persona.name,
        pitch=truncate(state.pitch, PITCH_EXCERPT_CHARS),
        recent_messages=format_recent_messages(state, RECENT_MESSAGE_COUNT),
        rejection_phrase=REJECTION_PHRASE,
        offer_example=OFFER_EXAMPLE,
        value_add_marker=VALUE_ADD_MARKER,
    )
    return f"{FINAL_DECISION_HEADING}\n{body}"


def build_lead_prompt(
    state: DiscussionState,
    names: list[str],
    prompts: PromptsConfig,
    strict: bool = False,
) -> str:
    joined = ", ".join(names)
    if strict:
        return f"{LEAD_SELECTION_HEADING}\n" + prompts.lead_selection_strict.format(names=joined)

    tally = state.participation()
    participation = "\n".join(f"- {name}: {tally.get(name, 0)}" for name in names)
    body = prompts.lead_selection.format(
        pitch=truncate(state.pitch, LEAD_PITCH_EXCERPT_CHARS),
        recent_messages=format_recent_messages(state, LEAD_RECENT_MESSAGE_COUNT),
        participation=participation,
        names=joined,
    )
    return f"{LEAD_SELECTION_HEADING}\n{body}"


def build_synthesis_prompt(state: DiscussionState, prompts: PromptsConfig) -> str:
    decisions = list(state.final_decisions.values())
    invest_count = sum(1 for d in decisions if d.decision == INVEST)
    body = prompts.synthesis.format(
        turns=state.current_turn,
        pitch=truncate(state.pitch, SYNTHESIS_PITCH_EXCERPT_CHARS),
        transcript=format_recent_messages(state, SYNTHESIS_TRANSCRIPT_TAIL),
        decisions=format_decisions_summary(decisions),
        invest_count=invest_count,
        pass_count=len(decisions) - invest_count,
    )
    return f"{SYNTHESIS_HEADING}\n{body}"
