"""Final synthesis: the committee lead's investment memo."""

import logging

from config.config_loader import PromptsConfig
from lovens_hule.models import DiscussionState, ModelResponse, Persona
from lovens_hule.prompts import build_synthesis_prompt
from lovens_hule.providers.base import AIProvider

logger = logging.getLogger(__name__)

EMPTY_PANEL_REPORT = (
    "# Investment Committee Memo\n\n"
    "Ingen investorer deltog i diskussionen, så der er ingen beslutninger at opsummere."
)


def trivial_report(state: DiscussionState) -> str:
    """Report for a run with an empty panel."""
    return f"{EMPTY_PANEL_REPORT}\n\nPitch: {state.pitch[:80]}"


async def synthesize(
    state: DiscussionState,
    synthesizer: AIProvider,
    prompts: PromptsConfig,
    lead: Persona | None = None,
) -> str:
    """Run synthesis and return the memo text.

    Raises:
        ProviderError: If the synthesizer call fails.
        RuntimeError: If the synthesizer returns empty content.
    """
    synthesis_prompt = build_synthesis_prompt(state, prompts)

    logger.info(
        "Running synthesis via %s (%d decisions)",
        synthesizer.name(),
        len(state.final_decisions),
    )
    logger.debug("Synthesis prompt:\n%s", synthesis_prompt)

    response: ModelResponse = await synthesizer.generate(
        synthesis_prompt,
        round_number=state.current_turn + 1,
        persona=lead,
    )

    if not response.content or not response.content.strip():
        raise RuntimeError(f"Synthesizer {synthesizer.name()} returned empty content")

    return response.content
