"""Rich console rendering of discussion events and markdown file save."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from lovens_hule.decisions import format_amount, format_equity
from lovens_hule.models import (
    DiscussionEvent,
    DiscussionResult,
    EventType,
    FinalDecision,
    GroupMessage,
)

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _decision_headline(decision: FinalDecision) -> str:
    if decision.is_invest:
        return f"INVESTERER {format_equity(decision.equity)} for {format_amount(decision.amount)}"
    return "ER UDE"


class DiscussionRecorder:
    """Folds the event stream into a DiscussionResult."""

    def __init__(self, pitch: str, source: str = "cli") -> None:
        self.result = DiscussionResult(pitch=pitch, source=source)

    def record(self, event: DiscussionEvent) -> None:
        result = self.result
        # synthesis events sit one past the last persona turn
        if event.type in (EventType.MESSAGE, EventType.FINAL_DECISION, EventType.ERROR):
            result.turns = max(result.turns, event.turn)
        if event.type in (EventType.MESSAGE, EventType.FINAL_DECISION):
            result.messages.append(
                GroupMessage(
                    sender=event.agent or "?",
                    message=event.message or "",
                    turn=event.turn,
                    is_final_decision=event.type == EventType.FINAL_DECISION,
                    decision=event.decision,
                )
            )
            if event.decision is not None:
                result.decisions.append(event.decision)
        elif event.type == EventType.SYNTHESIS_COMPLETE:
            result.synthesis = event.message
        elif event.type == EventType.SYNTHESIS_ERROR:
            result.synthesis_error = event.error


def render_event(event: DiscussionEvent) -> None:
    """Print one event to the console."""
    color = event.colors.text if event.colors else "white"

    if event.type == EventType.AGENT_START and event.turn == 0:
        console.print(Text(f"● {event.agent} sætter sig i hulen", style=color))
    elif event.type == EventType.AGENT_START:
        console.print(Rule(f"[bold]{event.agent}[/bold] skriver memo", style=color))
    elif event.type == EventType.TYPING_START:
        console.print(Text(f"{event.agent} skriver...", style="dim italic"))
    elif event.type == EventType.MESSAGE:
        console.print(
            Panel(
                event.message or "",
                title=f"[bold]{event.agent}[/bold]",
                subtitle=f"tur {event.turn}",
                border_style=color,
            )
        )
    elif event.type == EventType.FINAL_DECISION and event.decision is not None:
        console.print(
            Panel(
                event.message or "",
                title=f"[bold]{event.agent}[/bold] - {_decision_headline(event.decision)}",
                subtitle=f"tur {event.turn}",
                border_style="green" if event.decision.is_invest else "red",
            )
        )
    elif event.type == EventType.FINAL_PHASE_START:
        console.print(Rule("[bold yellow]Endelige beslutninger[/bold yellow]"))
    elif event.type == EventType.ALL_DECISIONS_COMPLETE:
        console.print(Text("Alle investorer har truffet deres beslutning.", style="bold"))
    elif event.type == EventType.ERROR:
        console.print(Text(f"{event.agent}: {event.message} ({event.error})", style="yellow"))
    elif event.type == EventType.SYNTHESIS_COMPLETE:
        console.print(Markdown(event.message or ""))
    elif event.type == EventType.SYNTHESIS_ERROR:
        console.print(f"[bold red]Syntese fejlede:[/bold red] {event.error}")
    elif event.type == EventType.DISCUSSION_COMPLETE:
        console.print(Rule("[bold green]Diskussionen er slut[/bold green]"))


def print_decisions(result: DiscussionResult) -> None:
    """Print a one-line summary per investor decision."""
    if not result.decisions:
        return
    console.print(Rule("[bold cyan]Beslutninger[/bold cyan]"))
    for decision in result.decisions:
        style = "green" if decision.is_invest else "red"
        console.print(Text(f"{decision.agent}: {_decision_headline(decision)}", style=style))


def save_to_file(result: DiscussionResult, output_dir: Path, slug_override: str | None = None) -> Path:
    """Save the full discussion transcript as a markdown file.

    Args:
        result: The completed DiscussionResult.
        output_dir: Directory to save the file in.
        slug_override: If provided, use this as the filename stem instead of
            deriving one from the pitch text.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    slug = slug_override if slug_override is not None else _slug(result.pitch) or "pitch"
    filepath = output_dir / f"{timestamp}_{slug}.md"

    invest_count = sum(1 for d in result.decisions if d.is_invest)
    lines: list[str] = [
        f"# Løvens Hule: {result.pitch[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Turns:** {result.turns}",
        f"**Duration:** {result.total_duration_sec:.1f}s",
        f"**Decisions:** {invest_count} invest, {len(result.decisions) - invest_count} pass",
        f"**Source:** {result.source}",
        "",
        "---",
        "",
        "## Diskussion",
        "",
    ]

    for msg in result.messages:
        marker = " (endelig beslutning)" if msg.is_final_decision else ""
        lines += [f"**{msg.sender}** · tur {msg.turn}{marker}", "", msg.message, ""]

    if result.decisions:
        lines += ["## Beslutninger", ""]
        for decision in result.decisions:
            lines.append(f"- **{decision.agent}**: {_decision_headline(decision)}")
            detail = decision.value_add if decision.is_invest else decision.reasoning
            if detail:
                lines.append(f"  - {detail}")
        lines.append("")

    lines += ["## Investment memo", ""]
    if result.synthesis is not None:
        lines.append(result.synthesis)
    else:
        lines.append(f"*Syntese fejlede: {result.synthesis_error or 'ukendt fejl'}*")
    lines.append("")

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Discussion saved to: %s", filepath)
    return filepath
