"""Startup health check: ping every provider a run will use."""

import asyncio
import logging
import time
from dataclasses import dataclass

from lovens_hule.providers.base import AIProvider

logger = logging.getLogger(__name__)

_PING_PROMPT = "Svar kun med ordet OK."
_TIMEOUT_SEC = 15.0


@dataclass(frozen=True)
class HealthStatus:
    provider: str
    ok: bool
    error: str = ""
    latency_sec: float = 0.0


async def _ping(provider: AIProvider) -> HealthStatus:
    start = time.monotonic()
    try:
        await asyncio.wait_for(provider.generate(_PING_PROMPT, round_number=0), timeout=_TIMEOUT_SEC)
    except Exception as exc:
        logger.debug("Health check failed for %s: %s", provider.name(), exc)
        return HealthStatus(provider.name(), ok=False, error=str(exc) or type(exc).__name__)
    return HealthStatus(provider.name(), ok=True, latency_sec=time.monotonic() - start)


async def run_health_checks(roles: dict[str, AIProvider]) -> dict[str, HealthStatus]:
    """Ping the providers behind each role in parallel.

    A provider shared by several roles (investors, lead, synthesizer) is
    pinged once.

    Returns:
        Dict mapping role -> HealthStatus of the provider serving it.
    """
    distinct: dict[int, AIProvider] = {id(p): p for p in roles.values()}
    statuses = await asyncio.gather(*(_ping(p) for p in distinct.values()))
    by_provider = dict(zip(distinct, statuses))
    return {role: by_provider[id(provider)] for role, provider in roles.items()}
