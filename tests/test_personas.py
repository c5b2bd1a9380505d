"""Tests for lovens_hule/personas.py."""

import logging

import pytest

from lovens_hule.models import NEUTRAL_THEME
from lovens_hule.personas import PersonaRegistry
from tests.conftest import LEAD, make_persona


def test_from_config(sample_app_config):
    registry = PersonaRegistry.from_config(sample_app_config)
    assert registry.names() == ["Jakob Risgaard", "Jesper Buch"]
    assert registry.lead.name == "Investment Committee Lead"
    assert registry.get("Jakob Risgaard").rival == "Jesper Buch"
    assert registry.get("Jakob Risgaard").theme.text == "#976D57"


def test_duplicate_persona_rejected():
    with pytest.raises(ValueError, match="Duplicate"):
        PersonaRegistry([make_persona("A"), make_persona("A")], lead=LEAD)


def test_contains_and_len(registry):
    assert "Jan Lehrmann" in registry
    assert "Nobody" not in registry
    assert len(registry) == 3


def test_theme_for(registry):
    assert registry.theme_for("Investment Committee Lead") == LEAD.theme
    assert registry.theme_for("Jan Lehrmann") == registry.get("Jan Lehrmann").theme
    assert registry.theme_for("Nobody") == NEUTRAL_THEME


def test_resolve_none_returns_all(registry):
    assert [p.name for p in registry.resolve(None)] == registry.names()


def test_resolve_keeps_requested_order_and_dedupes(registry):
    panel = registry.resolve(["Jan Lehrmann", " Jakob Risgaard ", "Jan Lehrmann"])
    assert [p.name for p in panel] == ["Jan Lehrmann", "Jakob Risgaard"]


def test_resolve_drops_unknown_names_with_warning(registry, caplog):
    with caplog.at_level(logging.WARNING, logger="lovens_hule.personas"):
        panel = registry.resolve(["Jesper Buch", "Mads Nobody"])
    assert [p.name for p in panel] == ["Jesper Buch"]
    assert "Mads Nobody" in caplog.text


def test_resolve_all_unknown_gives_empty_panel(registry):
    assert registry.resolve(["X", "Y"]) == []
    assert registry.resolve([]) == []
