"""Final decision parsing.

Each investor ends the discussion with one of two phrasings that the final
decision prompt asks for:

    "... Jeg er ude."                              -> PASS
    "Jeg tilbyder 15% for 500.000 kr. Sådan kan jeg hjælpe: ..."  -> INVEST

Parsing is plain pattern matching against those exact phrasings, so anything
else (a paraphrase, a different currency word) is *not* a decision.
"""

import re

from lovens_hule.models import INVEST, PASS, FinalDecision

REJECTION_PHRASE = "Jeg er ude"
OFFER_EXAMPLE = "Jeg tilbyder 15% for 500.000 kr"
VALUE_ADD_MARKER = "Sådan kan jeg hjælpe:"
GENERATION_ERROR_SENTINEL = "[GENERATION_ERROR]"
FALLBACK_PASS_REASONING = (
    "Jeg nåede ikke at danne mig et klart nok billede af forretningen til at investere."
)

_OFFER_RE = re.compile(
    r"jeg\s+tilbyder\s+"
    r"(?P<equity>\d{1,3}(?:[.,]\d+)?)\s*%\s+"
    r"for\s+"
    r"(?P<amount>\d{1,3}(?:[.,\s]\d{3})+|\d+)\s*"
    r"(?:kr\.?|kroner|dkk)(?!\w)",
    re.IGNORECASE,
)
_SENTENCE_END_RE = re.compile(r"[.!?](?:\s+)")
_AMOUNT_SEPARATORS_RE = re.compile(r"[.,\s]")


def _parse_equity(raw: str) -> float:
    return float(raw.replace(",", "."))


def _parse_amount(raw: str) -> int:
    return int(_AMOUNT_SEPARATORS_RE.sub("", raw))


def _after_first_sentence(text: str) -> str:
    match = _SENTENCE_END_RE.search(text)
    return text[match.end():].strip() if match else ""


def parse_final_decision(text: str, agent: str) -> FinalDecision | None:
    """Parse an investor's closing statement into a FinalDecision.

    Returns None when neither the rejection phrase nor an offer is present.
    """
    rejection_at = text.lower().find(REJECTION_PHRASE.lower())
    if rejection_at != -1:
        return FinalDecision(
            agent=agent,
            decision=PASS,
            reasoning=text[:rejection_at].strip(),
        )

    offer = _OFFER_RE.search(text)
    if offer is None:
        return None

    marker_at = text.lower().find(VALUE_ADD_MARKER.lower())
    if marker_at != -1:
        value_add = text[marker_at + len(VALUE_ADD_MARKER):].strip()
    else:
        value_add = _after_first_sentence(text)

    return FinalDecision(
        agent=agent,
        decision=INVEST,
        equity=_parse_equity(offer.group("equity")),
        amount=_parse_amount(offer.group("amount")),
        value_add=value_add,
    )


def is_generation_failure(text: str | None) -> bool:
    return not text or not text.strip() or GENERATION_ERROR_SENTINEL in text


def fallback_pass_decision(agent: str, reasoning: str = FALLBACK_PASS_REASONING) -> FinalDecision:
    return FinalDecision(agent=agent, decision=PASS, reasoning=reasoning or FALLBACK_PASS_REASONING)


def format_amount(amount: int | None) -> str:
    if amount is None:
        return "?"
    return f"{amount:,}".replace(",", ".") + " kr"


def format_equity(equity: float | None) -> str:
    if equity is None:
        return "?"
    return f"{equity:g}%".replace(".", ",")


def format_decision(decision: FinalDecision) -> str:
    if decision.is_invest:
        line = (
            f"- {decision.agent}: INVESTERER {format_equity(decision.equity)} "
            f"for {format_amount(decision.amount)}"
        )
        if decision.value_add:
            line += f". Bidrag: {decision.value_add}"
        return line
    reasoning = decision.reasoning or "ingen begrundelse"
    return f"- {decision.agent}: UDE. Begrundelse: {reasoning}"


def format_decisions_summary(decisions: dict[str, FinalDecision] | list[FinalDecision]) -> str:
    items = list(decisions.values()) if isinstance(decisions, dict) else list(decisions)
    if not items:
        return "(ingen beslutninger)"
    return "\n".join(format_decision(d) for d in items)
