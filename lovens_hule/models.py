"""Dataclasses for the panel discussion: personas, transcript, decisions, events."""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

INVEST = "INVEST"
PASS = "PASS"

_RESPONSE_PHRASES = ("hvad tænker", "enig?", "thoughts?", "agree?")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _message_id() -> str:
    return f"msg_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class Theme:
    background: str
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"background": self.background, "text": self.text}


NEUTRAL_THEME = Theme(background="#F1F1EF", text="#787774")


@dataclass(frozen=True)
class Persona:
    name: str
    instructions: str
    theme: Theme
    rival: str | None = None

    @property
    def first_name(self) -> str:
        return self.name.split()[0]


@dataclass
class ModelResponse:
    provider: str          # "openai", "claude", "gemini", "grok", "simulated"
    model: str             # actual model string used
    round_number: int      # discussion turn the reply belongs to
    content: str
    latency_sec: float
    token_count: int | None


@dataclass(frozen=True)
class FinalDecision:
    agent: str
    decision: str          # INVEST or PASS
    equity: float | None = None
    amount: int | None = None
    value_add: str = ""
    reasoning: str = ""
    timestamp: datetime = field(default_factory=_utcnow, compare=False)

    @property
    def is_invest(self) -> bool:
        return self.decision == INVEST

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "agent": self.agent,
            "decision": self.decision,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.is_invest:
            data.update(equity=self.equity, amount=self.amount, valueAdd=self.value_add)
        else:
            data["reasoning"] = self.reasoning
        return data


def needs_response(text: str) -> bool:
    """Heuristic: does this message invite a reply from the panel?"""
    lowered = text.lower()
    return "?" in text or any(phrase in lowered for phrase in _RESPONSE_PHRASES)


@dataclass(frozen=True)
class GroupMessage:
    sender: str
    message: str
    turn: int
    is_final_decision: bool = False
    decision: FinalDecision | None = None
    id: str = field(default_factory=_message_id)
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def needs_response(self) -> bool:
        return needs_response(self.message)

    def mentions(self, persona: Persona) -> bool:
        """True when this message addresses the persona by full or first name."""
        pattern = rf"@?\b(?:{re.escape(persona.name)}|{re.escape(persona.first_name)})\b"
        return re.search(pattern, self.message, re.IGNORECASE) is not None


@dataclass
class DiscussionState:
    """Mutable state owned by exactly one discussion run."""

    pitch: str
    active_agents: list[str]
    max_turns: int
    group_chat: list[GroupMessage] = field(default_factory=list)
    current_turn: int = 0
    final_decision_phase: bool = False
    agents_with_final_decision: set[str] = field(default_factory=set)
    final_decisions: dict[str, FinalDecision] = field(default_factory=dict)
    final_attempts: dict[str, int] = field(default_factory=dict)

    @property
    def total_active_agents(self) -> int:
        return len(self.active_agents)

    def append(self, message: GroupMessage) -> None:
        if self.group_chat and message.turn < self.group_chat[-1].turn:
            raise ValueError(
                f"Message turn {message.turn} precedes last turn {self.group_chat[-1].turn}"
            )
        self.group_chat.append(message)

    def record_decision(self, decision: FinalDecision) -> bool:
        """Record a persona's final decision. The first one recorded wins."""
        if decision.agent in self.final_decisions:
            return False
        self.final_decisions[decision.agent] = decision
        self.agents_with_final_decision.add(decision.agent)
        return True

    def undecided_agents(self) -> list[str]:
        return [a for a in self.active_agents if a not in self.agents_with_final_decision]

    def participation(self) -> dict[str, int]:
        counts = {name: 0 for name in self.active_agents}
        for msg in self.group_chat:
            if msg.sender in counts:
                counts[msg.sender] += 1
        return counts

    def recent_messages(self, count: int) -> list[GroupMessage]:
        return self.group_chat[-count:] if count > 0 else []

    def remaining_turns(self, turn: int) -> int:
        """Turns left in the budget, counting `turn` itself."""
        return self.max_turns - turn + 1

    def should_enter_final_phase(self, turn: int) -> bool:
        if self.final_decision_phase:
            return False
        undecided = len(self.undecided_agents())
        return undecided > 0 and self.remaining_turns(turn) <= undecided

    def enter_final_phase(self) -> bool:
        if self.final_decision_phase:
            return False
        self.final_decision_phase = True
        return True

    @property
    def all_decided(self) -> bool:
        return self.total_active_agents > 0 and not self.undecided_agents()

    @property
    def budget_exhausted(self) -> bool:
        return self.current_turn >= self.max_turns

    @property
    def is_complete(self) -> bool:
        return self.all_decided or self.budget_exhausted


class EventType(str, Enum):
    AGENT_START = "agent_start"
    TYPING_START = "agent_typing_start"
    TYPING_STOP = "agent_typing_stop"
    MESSAGE = "agent_message"
    FINAL_DECISION = "final_decision"
    FINAL_PHASE_START = "final_phase_start"
    ALL_DECISIONS_COMPLETE = "all_decisions_complete"
    ERROR = "agent_error"
    SYNTHESIS_COMPLETE = "synthesis_complete"
    SYNTHESIS_ERROR = "synthesis_error"
    DISCUSSION_COMPLETE = "discussion_complete"


@dataclass(frozen=True)
class DiscussionEvent:
    type: EventType
    turn: int
    agent: str | None = None
    message: str | None = None
    colors: Theme | None = None
    decision: FinalDecision | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form for transports (JSON, SSE)."""
        data: dict[str, Any] = {"type": self.type.value, "turn": self.turn}
        if self.agent is not None:
            data["agent"] = self.agent
        if self.message is not None:
            data["message"] = self.message
        if self.colors is not None:
            data["colors"] = self.colors.to_dict()
        if self.decision is not None:
            data["decision"] = self.decision.to_dict()
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class DiscussionResult:
    pitch: str
    messages: list[GroupMessage] = field(default_factory=list)
    decisions: list[FinalDecision] = field(default_factory=list)
    synthesis: str | None = None
    synthesis_error: str | None = None
    turns: int = 0
    total_duration_sec: float = 0.0
    source: str = "cli"
