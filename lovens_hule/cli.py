"""Click CLI — loads config, picks providers, streams the discussion, saves it."""

import asyncio
import logging
import random
import sys
import time
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from lovens_hule.discussion import PacingConfig, run_discussion
from lovens_hule.healthcheck import HealthStatus, run_health_checks
from lovens_hule.models import DiscussionResult
from lovens_hule.output import DiscussionRecorder, print_decisions, render_event, save_to_file
from lovens_hule.personas import PersonaRegistry
from lovens_hule.pitch import parse_investors, parse_pitch_file
from lovens_hule.providers.anthropic import AnthropicProvider
from lovens_hule.providers.base import AIProvider
from lovens_hule.providers.gemini import GeminiProvider
from lovens_hule.providers.openai_provider import OpenAIProvider
from lovens_hule.providers.simulated import SimulatedProvider

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "google-genai": GeminiProvider,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_provider(config: AppConfig, name: str) -> AIProvider | None:
    """Instantiate a configured provider, or None if it is unusable."""
    if name not in config.available_providers:
        logger.warning("Provider '%s' has no API key, skipping", name)
        return None
    model_cfg = config.models[name]
    provider_cls = PROVIDER_CLASSES.get(model_cfg.sdk)
    if provider_cls is None:
        logger.warning("Provider '%s' uses unknown sdk '%s', skipping", name, model_cfg.sdk)
        return None
    try:
        return provider_cls(model_cfg)
    except Exception as exc:
        logger.warning("Failed to instantiate provider '%s': %s", name, exc)
        return None


def _select_providers(
    config: AppConfig,
    provider_name: str,
    synthesizer_name: str,
    simulate: bool,
    rng: random.Random,
) -> tuple[AIProvider, AIProvider | None, AIProvider]:
    """Returns (investor provider, lead provider or None, synthesizer).

    Falls back to the simulated provider when the requested one is unusable.
    """
    if simulate:
        simulated = SimulatedProvider(rng=rng)
        return simulated, None, simulated

    provider = _build_provider(config, provider_name)
    if provider is None:
        console.print(
            f"[yellow]Provider '{provider_name}' unavailable, running in simulated mode.[/yellow]"
        )
        simulated = SimulatedProvider(rng=rng)
        return simulated, None, simulated

    synthesizer = provider
    if synthesizer_name != provider_name:
        synthesizer = _build_provider(config, synthesizer_name) or provider
    return provider, provider, synthesizer


def _check_providers(roles: dict[str, AIProvider]) -> None:
    """Ping the provider behind each role; ask before going on when one fails."""
    console.print("\n[bold]Checking providers...[/bold]")
    results: dict[str, HealthStatus] = asyncio.run(run_health_checks(roles))

    failed = False
    for role, status in results.items():
        if status.ok:
            console.print(f"  [green]OK  [/green] {role} ({status.provider}, {status.latency_sec:.1f}s)")
        else:
            short_err = status.error.splitlines()[0][:120] if status.error else "unknown error"
            console.print(f"  [red]FAIL[/red] {role} ({status.provider}): {short_err}")
            failed = True

    if failed and not click.confirm("Continue anyway (failing turns become errors)?", default=False):
        sys.exit(1)
    console.print()


async def _run(
    pitch: str,
    source: str,
    config: AppConfig,
    registry: PersonaRegistry,
    provider: AIProvider,
    lead: AIProvider | None,
    synthesizer: AIProvider,
    turns: int,
    investors: list[str] | None,
    pacing: PacingConfig,
    rng: random.Random,
) -> DiscussionResult:
    """Stream one discussion to the console and return what was said."""
    recorder = DiscussionRecorder(pitch, source=source)
    start = time.monotonic()

    events = run_discussion(
        pitch,
        registry=registry,
        provider=provider,
        prompts=config.prompts,
        max_turns=turns,
        investors=investors,
        lead=lead,
        synthesizer=synthesizer,
        pacing=pacing,
        max_final_attempts=config.defaults.max_final_attempts,
        rng=rng,
    )
    try:
        async for event in events:
            recorder.record(event)
            render_event(event)
    finally:
        await events.aclose()

    recorder.result.total_duration_sec = time.monotonic() - start
    return recorder.result


@click.command()
@click.argument("pitch", required=False)
@click.option("--file", "pitch_file", type=click.Path(exists=True), help="Read the pitch from a .md/.txt file")
@click.option("--turns", default=None, type=click.IntRange(min=1), help="Turn budget (default: from config)")
@click.option("--investors", default=None, help="Comma-separated investor names (default: whole panel)")
@click.option("--provider", "provider_name", default=None, help="Provider for investor replies (default: from config)")
@click.option("--synthesizer", default=None, help="Provider for the final memo (default: from config)")
@click.option("--simulate", is_flag=True, help="Use canned offline replies instead of an API")
@click.option("--no-delay", is_flag=True, help="Skip the typing pause between replies")
@click.option("--seed", default=None, type=int, help="Random seed for pacing, styling and simulated replies")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
def main(
    pitch: str | None,
    pitch_file: str | None,
    turns: int | None,
    investors: str | None,
    provider_name: str | None,
    synthesizer: str | None,
    simulate: bool,
    no_delay: bool,
    seed: int | None,
    output_path: str | None,
    verbose: bool,
    skip_health_check: bool,
) -> None:
    """Løvens Hule -- a panel of investors discusses your pitch.

    \b
    Examples:
      lovens-hule "Vi sælger abonnementer på hundemad" --turns 8
      lovens-hule --file pitch.md --investors "Jakob Risgaard,Jan Lehrmann"
      lovens-hule "Vi laver app til padel-booking" --simulate --no-delay
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    file_turns: int | None = None
    file_investors: list[str] | None = None
    if pitch_file:
        try:
            parsed = parse_pitch_file(Path(pitch_file))
        except ValueError as exc:
            console.print(f"[bold red]Pitch file error:[/bold red] {exc}")
            sys.exit(1)
        pitch_text, source = parsed.text, parsed.source
        file_turns, file_investors = parsed.turns, parsed.investors
    elif pitch:
        pitch_text, source = pitch.strip(), "cli"
    else:
        console.print("[bold red]Error:[/bold red] Provide a PITCH argument or --file.")
        sys.exit(1)

    if not pitch_text:
        console.print("[bold red]Error:[/bold red] The pitch is empty.")
        sys.exit(1)

    # CLI flags win; frontmatter only fills in when the flag is not set
    if turns is not None:
        effective_turns = turns
    elif file_turns is not None:
        effective_turns = file_turns
    else:
        effective_turns = config.defaults.max_turns
    effective_investors = parse_investors(investors) if investors is not None else file_investors
    effective_output = Path(output_path) if output_path else config.defaults.output_dir

    rng = random.Random(seed)
    registry = PersonaRegistry.from_config(config)
    provider, lead, synth = _select_providers(
        config,
        provider_name or config.defaults.provider,
        synthesizer or config.defaults.synthesizer,
        simulate,
        rng,
    )

    if not skip_health_check and not isinstance(provider, SimulatedProvider):
        roles = {"investors": provider, "synthesizer": synth}
        if lead is not None:
            roles["lead"] = lead
        _check_providers(roles)

    pacing = (
        PacingConfig(0.0, 0.0)
        if no_delay
        else PacingConfig(config.defaults.min_delay_sec, config.defaults.max_delay_sec)
    )

    panel = registry.resolve(effective_investors)
    console.print(f"\n[bold cyan]Løvens Hule[/bold cyan] — {len(panel)} investors, {effective_turns} turns")
    console.print(f"Panel: {', '.join(p.name for p in panel) or '(ingen)'}")
    console.print(f"Provider: {provider.name()} ({provider.model_string()})")
    console.print(f"Pitch: [italic]{pitch_text[:80]}{'...' if len(pitch_text) > 80 else ''}[/italic]\n")

    result = asyncio.run(
        _run(
            pitch=pitch_text,
            source=source,
            config=config,
            registry=registry,
            provider=provider,
            lead=lead,
            synthesizer=synth,
            turns=effective_turns,
            investors=[p.name for p in panel],
            pacing=pacing,
            rng=rng,
        )
    )

    print_decisions(result)
    slug = Path(pitch_file).stem if pitch_file else None
    saved_path = save_to_file(result, effective_output, slug_override=slug)
    console.print(f"\n[dim]Saved to: {saved_path}[/dim]")
    if result.synthesis is None:
        sys.exit(1)


if __name__ == "__main__":
    main()
