"""Discussion orchestration: turn loop, final-decision phase, synthesis.

`run_discussion` is an async generator of DiscussionEvents. It processes one
investor turn at a time and spawns no background tasks, so a caller that stops
iterating (or cancels the consuming task) stops all further provider calls.
"""

import asyncio
import logging
import random
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

from config.config_loader import PromptsConfig
from lovens_hule.decisions import (
    fallback_pass_decision,
    is_generation_failure,
    parse_final_decision,
)
from lovens_hule.models import (
    DiscussionEvent,
    DiscussionState,
    EventType,
    FinalDecision,
    GroupMessage,
    Persona,
)
from lovens_hule.personas import PersonaRegistry
from lovens_hule.prompts import (
    PromptStyle,
    RandomPromptStyle,
    build_final_decision_prompt,
    build_regular_prompt,
)
from lovens_hule.providers.base import AIProvider
from lovens_hule.scheduler import SpeakerSelector
from lovens_hule.synthesis import synthesize, trivial_report

logger = logging.getLogger(__name__)

TURN_ERROR_NOTICE = "Beklager, jeg mistede tråden et øjeblik. Vi fortsætter..."
SYNTHESIS_ERROR_NOTICE = "Syntesen fejlede. Se investorernes indlæg ovenfor."


@dataclass(frozen=True)
class PacingConfig:
    """Window for the artificial typing pause before each reply."""

    min_delay_sec: float = 4.0
    max_delay_sec: float = 10.0

    def delay(self, rng: random.Random) -> float:
        if self.max_delay_sec <= 0:
            return 0.0
        return rng.uniform(self.min_delay_sec, self.max_delay_sec)


class _DiscussionRun:
    """One discussion: owns its state exclusively and yields events."""

    def __init__(
        self,
        state: DiscussionState,
        panel: dict[str, Persona],
        registry: PersonaRegistry,
        provider: AIProvider,
        synthesizer: AIProvider,
        selector: SpeakerSelector,
        prompts: PromptsConfig,
        style: PromptStyle,
        pacing: PacingConfig,
        max_final_attempts: int,
        rng: random.Random,
        sleep: Callable[[float], Awaitable[object]],
    ) -> None:
        self.state = state
        self._panel = panel
        self._registry = registry
        self._provider = provider
        self._synthesizer = synthesizer
        self._selector = selector
        self._prompts = prompts
        self._style = style
        self._pacing = pacing
        self._max_final_attempts = max_final_attempts
        self._rng = rng
        self._sleep = sleep

    def _event(
        self,
        event_type: EventType,
        agent: str | None = None,
        turn: int | None = None,
        **fields,
    ) -> DiscussionEvent:
        return DiscussionEvent(
            type=event_type,
            turn=self.state.current_turn if turn is None else turn,
            agent=agent,
            colors=self._registry.theme_for(agent) if agent else None,
            **fields,
        )

    async def events(self) -> AsyncIterator[DiscussionEvent]:
        state = self.state
        logger.info(
            "Starting discussion: %d investors, %d turns",
            state.total_active_agents,
            state.max_turns,
        )

        for name in state.active_agents:
            yield self._event(EventType.AGENT_START, name, turn=0)

        while not state.is_complete:
            turn = state.current_turn + 1
            if state.should_enter_final_phase(turn):
                state.enter_final_phase()
                logger.info(
                    "Turn %d: entering final decision phase (%d undecided)",
                    turn,
                    len(state.undecided_agents()),
                )
                yield self._event(
                    EventType.FINAL_PHASE_START,
                    turn=turn,
                    message="Tid til de endelige beslutninger.",
                )

            speaker = await self._selector.select(state)
            if speaker is None:
                break

            state.current_turn = turn
            async for event in self._persona_turn(self._panel[speaker]):
                yield event

        for event in self._force_remaining_decisions():
            yield event

        if state.all_decided:
            logger.info("All %d investors have decided", state.total_active_agents)
            yield self._event(EventType.ALL_DECISIONS_COMPLETE)

        async for event in self._synthesis():
            yield event

    async def _persona_turn(self, persona: Persona) -> AsyncIterator[DiscussionEvent]:
        state = self.state
        final = state.final_decision_phase

        yield self._event(EventType.TYPING_START, persona.name)
        await self._sleep(self._pacing.delay(self._rng))

        if final:
            prompt = build_final_decision_prompt(persona, state, self._prompts)
        else:
            prompt = build_regular_prompt(persona, state, self._prompts, self._style)
        logger.debug("Turn %d prompt for %s:\n%s", state.current_turn, persona.name, prompt)

        try:
            response = await self._provider.generate(prompt, state.current_turn, persona)
        except Exception as exc:
            logger.warning("%s failed on turn %d: %s", persona.name, state.current_turn, exc)
            yield self._event(EventType.TYPING_STOP, persona.name)
            if final:
                yield self._finalize(persona, fallback_pass_decision(persona.name))
            else:
                yield self._event(EventType.ERROR, persona.name, message=TURN_ERROR_NOTICE, error=str(exc))
            return

        text = response.content.strip()

        if not final:
            yield self._event(EventType.TYPING_STOP, persona.name)
            if is_generation_failure(text):
                logger.warning("%s returned no usable text on turn %d", persona.name, state.current_turn)
                yield self._event(
                    EventType.ERROR,
                    persona.name,
                    message=TURN_ERROR_NOTICE,
                    error="Empty or failed generation",
                )
                return
            state.append(GroupMessage(sender=persona.name, message=text, turn=state.current_turn))
            yield self._event(EventType.MESSAGE, persona.name, message=text)
            return

        decision = self._decide(persona, text)
        yield self._event(EventType.TYPING_STOP, persona.name)
        if decision is None:
            state.append(
                GroupMessage(
                    sender=persona.name,
                    message=text,
                    turn=state.current_turn,
                    is_final_decision=True,
                )
            )
            yield self._event(EventType.MESSAGE, persona.name, message=text)
        else:
            yield self._finalize(persona, decision, text)

    def _decide(self, persona: Persona, text: str) -> FinalDecision | None:
        if is_generation_failure(text):
            logger.warning("%s: generation failed in final phase, recording PASS", persona.name)
            return fallback_pass_decision(persona.name)

        decision = parse_final_decision(text, persona.name)
        if decision is not None:
            return decision

        attempts = self.state.final_attempts.get(persona.name, 0) + 1
        self.state.final_attempts[persona.name] = attempts
        if attempts >= self._max_final_attempts:
            logger.warning(
                "%s gave no parseable decision in %d attempts, recording PASS",
                persona.name,
                attempts,
            )
            return fallback_pass_decision(persona.name, reasoning=text)
        logger.info("%s gave no parseable decision (attempt %d)", persona.name, attempts)
        return None

    def _finalize(self, persona: Persona, decision: FinalDecision, text: str | None = None) -> DiscussionEvent:
        message = text if text and not is_generation_failure(text) else decision.reasoning
        self.state.record_decision(decision)
        self.state.append(
            GroupMessage(
                sender=persona.name,
                message=message,
                turn=self.state.current_turn,
                is_final_decision=True,
                decision=decision,
            )
        )
        logger.info("%s decided %s", persona.name, decision.decision)
        return self._event(EventType.FINAL_DECISION, persona.name, message=message, decision=decision)

    def _force_remaining_decisions(self) -> list[DiscussionEvent]:
        undecided = self.state.undecided_agents()
        if undecided:
            logger.warning("Turn budget exhausted; forcing PASS for %s", ", ".join(undecided))
        return [
            self._finalize(self._panel[name], fallback_pass_decision(name))
            for name in undecided
        ]

    async def _synthesis(self) -> AsyncIterator[DiscussionEvent]:
        state = self.state
        lead = self._registry.lead
        turn = state.current_turn + 1

        if not state.active_agents:
            logger.info("Empty panel; skipping synthesis call")
            yield self._event(EventType.SYNTHESIS_COMPLETE, lead.name, turn=turn, message=trivial_report(state))
            yield self._event(EventType.DISCUSSION_COMPLETE, turn=turn)
            return

        yield self._event(EventType.AGENT_START, lead.name, turn=turn)
        try:
            report = await synthesize(state, self._synthesizer, self._prompts, lead)
        except Exception as exc:
            logger.error("Synthesis failed: %s", exc)
            yield self._event(
                EventType.SYNTHESIS_ERROR,
                lead.name,
                turn=turn,
                message=SYNTHESIS_ERROR_NOTICE,
                error=str(exc),
            )
            return

        yield self._event(EventType.SYNTHESIS_COMPLETE, lead.name, turn=turn, message=report)
        logger.info("Discussion complete after %d turns", state.current_turn)
        yield self._event(EventType.DISCUSSION_COMPLETE, turn=turn)


async def run_discussion(
    pitch: str,
    *,
    registry: PersonaRegistry,
    provider: AIProvider,
    prompts: PromptsConfig,
    max_turns: int,
    investors: list[str] | None = None,
    lead: AIProvider | None = None,
    synthesizer: AIProvider | None = None,
    style: PromptStyle | None = None,
    pacing: PacingConfig | None = None,
    max_final_attempts: int = 2,
    rng: random.Random | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> AsyncIterator[DiscussionEvent]:
    """Run one panel discussion of a pitch, yielding events as they happen.

    Args:
        pitch: The pitch text.
        registry: Persona registry; `investors` selects from it.
        provider: Generates every investor reply.
        prompts: Prompt templates from config.
        max_turns: Turn budget (>= 1).
        investors: Names to activate; None means the whole registry.
        lead: Picks the next speaker in the regular phase; None means
            least-active selection throughout.
        synthesizer: Writes the final memo; defaults to `provider`.
        style: Reply-length/banter strategy; defaults to RandomPromptStyle.
        pacing: Typing pause window.
        max_final_attempts: Final-phase turns without a parseable decision
            before a PASS is recorded for that investor.
        rng: Source of randomness for pacing, styling and tie-breaks.
        sleep: Awaitable used for the typing pause.

    Yields:
        DiscussionEvent, in emission order == transcript order.

    Raises:
        ValueError: If max_turns < 1 or max_final_attempts < 1.
    """
    if max_turns < 1:
        raise ValueError(f"max_turns must be >= 1, got {max_turns}")
    if max_final_attempts < 1:
        raise ValueError(f"max_final_attempts must be >= 1, got {max_final_attempts}")

    rng = rng or random.Random()
    panel = {p.name: p for p in registry.resolve(investors)}
    state = DiscussionState(pitch=pitch, active_agents=list(panel), max_turns=max_turns)

    run = _DiscussionRun(
        state=state,
        panel=panel,
        registry=registry,
        provider=provider,
        synthesizer=synthesizer or provider,
        selector=SpeakerSelector(prompts, lead=lead, lead_persona=registry.lead, rng=rng),
        prompts=prompts,
        style=style or RandomPromptStyle(rng),
        pacing=pacing or PacingConfig(),
        max_final_attempts=max_final_attempts,
        rng=rng,
        sleep=sleep,
    )
    async for event in run.events():
        yield event
