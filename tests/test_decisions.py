"""Tests for lovens_hule/decisions.py."""

import pytest

from lovens_hule.decisions import (
    FALLBACK_PASS_REASONING,
    fallback_pass_decision,
    format_amount,
    format_decision,
    format_decisions_summary,
    format_equity,
    is_generation_failure,
    parse_final_decision,
)
from lovens_hule.models import INVEST, PASS, FinalDecision


def test_parse_rejection_is_pass():
    decision = parse_final_decision("For mange ubekendte i økonomien. Jeg er ude.", "Jan Lehrmann")
    assert decision is not None
    assert decision.decision == PASS
    assert decision.agent == "Jan Lehrmann"
    assert decision.reasoning == "For mange ubekendte i økonomien."


def test_parse_rejection_is_case_insensitive():
    decision = parse_final_decision("JEG ER UDE", "A")
    assert decision is not None
    assert decision.decision == PASS
    assert decision.reasoning == ""


def test_parse_offer_with_value_add_marker():
    text = "Jeg tilbyder 15% for 500.000 kr. Sådan kan jeg hjælpe: Jeg åbner døre til detailkæderne."
    decision = parse_final_decision(text, "Jesper Buch")
    assert decision is not None
    assert decision.decision == INVEST
    assert decision.equity == 15.0
    assert decision.amount == 500_000
    assert decision.value_add == "Jeg åbner døre til detailkæderne."


def test_parse_offer_without_marker_uses_text_after_first_sentence():
    text = "Jeg tilbyder 20% for 1.000.000 kr. Jeg kan hjælpe med salget i Tyskland."
    decision = parse_final_decision(text, "Jesper Buch")
    assert decision is not None
    assert decision.amount == 1_000_000
    assert decision.value_add == "Jeg kan hjælpe med salget i Tyskland."


@pytest.mark.parametrize(
    "text, equity, amount",
    [
        ("Jeg tilbyder 12,5% for 750.000 kr.", 12.5, 750_000),
        ("jeg tilbyder 10 % for 250000 kroner", 10.0, 250_000),
        ("Jeg tilbyder 30% for 2 000 000 DKK", 30.0, 2_000_000),
        ("Jeg tilbyder 25% for 1,500,000 kr", 25.0, 1_500_000),
    ],
)
def test_parse_offer_number_formats(text, equity, amount):
    decision = parse_final_decision(text, "A")
    assert decision is not None
    assert decision.equity == equity
    assert decision.amount == amount


@pytest.mark.parametrize(
    "text",
    [
        "Jeg vil gerne investere 15% for 500.000 kr.",
        "Jeg tilbyder 15% for 500.000 euro.",
        "Jeg tilbyder femten procent for en halv million.",
        "Jeg er ikke helt ude endnu, fortæl mere.",
        "",
    ],
)
def test_parse_near_misses_return_none(text):
    assert parse_final_decision(text, "A") is None


def test_parse_rejection_wins_over_offer():
    text = "Jeg tilbyder 15% for 500.000 kr... nej, Jeg er ude."
    decision = parse_final_decision(text, "A")
    assert decision is not None
    assert decision.decision == PASS


def test_parse_is_idempotent():
    text = "Jeg tilbyder 15% for 500.000 kr. Sådan kan jeg hjælpe: Netværk."
    assert parse_final_decision(text, "A") == parse_final_decision(text, "A")


@pytest.mark.parametrize("text", [None, "", "   ", "[GENERATION_ERROR] timeout"])
def test_is_generation_failure(text):
    assert is_generation_failure(text) is True


def test_is_generation_failure_false_for_text():
    assert is_generation_failure("Jeg er ude.") is False


def test_fallback_pass_decision_defaults_reasoning():
    decision = fallback_pass_decision("A")
    assert decision.decision == PASS
    assert decision.reasoning == FALLBACK_PASS_REASONING
    assert fallback_pass_decision("A", reasoning="").reasoning == FALLBACK_PASS_REASONING


def test_format_amount_and_equity():
    assert format_amount(500_000) == "500.000 kr"
    assert format_amount(None) == "?"
    assert format_equity(15.0) == "15%"
    assert format_equity(12.5) == "12,5%"


def test_format_decision_invest_and_pass():
    invest = FinalDecision("A", INVEST, equity=15.0, amount=500_000, value_add="Netværk")
    passed = FinalDecision("B", PASS, reasoning="For tidligt")
    assert format_decision(invest) == "- A: INVESTERER 15% for 500.000 kr. Bidrag: Netværk"
    assert format_decision(passed) == "- B: UDE. Begrundelse: For tidligt"


def test_format_decisions_summary_empty():
    assert format_decisions_summary({}) == "(ingen beslutninger)"
    assert format_decisions_summary([]) == "(ingen beslutninger)"


def test_format_decisions_summary_preserves_order():
    decisions = {
        "B": FinalDecision("B", PASS, reasoning="x"),
        "A": FinalDecision("A", PASS, reasoning="y"),
    }
    lines = format_decisions_summary(decisions).splitlines()
    assert lines[0].startswith("- B:")
    assert lines[1].startswith("- A:")
