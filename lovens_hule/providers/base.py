"""Abstract base for all text-generation providers."""

import asyncio
import logging
import os
import time
from abc import ABC, abstractmethod
from typing import Any

from config.config_loader import ModelConfig
from lovens_hule.models import ModelResponse, Persona

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class AIProvider(ABC):
    """Abstract base for all text-generation providers."""

    @abstractmethod
    def name(self) -> str:
        """Return the short provider name (e.g. 'openai', 'claude')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        round_number: int,
        persona: Persona | None = None,
    ) -> ModelResponse:
        """Generate one reply for the given prompt.

        Args:
            prompt: The full user prompt text to send.
            round_number: The discussion turn (0 for pings and out-of-turn calls).
            persona: Speaker whose instructions become the system prompt.

        Returns:
            ModelResponse dataclass with content and metadata.

        Raises:
            ProviderError: On API failure, timeout, or empty response.
        """
        ...


class SDKProvider(AIProvider):
    """A provider backed by a vendor SDK client configured from settings.yaml.

    Subclasses build the client, issue one request and pull the text back
    out; timeouts, error wrapping and latency bookkeeping live here.
    """

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = self._make_client(api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    @abstractmethod
    def _make_client(self, api_key: str) -> Any:
        ...

    @abstractmethod
    async def _complete(self, prompt: str, system: str | None) -> Any:
        """Send one request and return the raw SDK response."""
        ...

    @abstractmethod
    def _extract(self, response: Any) -> tuple[str, int | None]:
        """Return (text, total token count) from a raw SDK response."""
        ...

    async def generate(
        self,
        prompt: str,
        round_number: int,
        persona: Persona | None = None,
    ) -> ModelResponse:
        system = persona.instructions if persona is not None and persona.instructions else None
        timeout = self._config.timeout_sec

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(self._complete(prompt, system), timeout=timeout)
        except TimeoutError as exc:
            raise ProviderError(self.name(), f"Request timed out after {timeout}s") from exc
        except Exception as exc:
            raise ProviderError(self.name(), f"API call failed: {exc}") from exc
        latency = time.monotonic() - start

        content, token_count = self._extract(response)
        content = (content or "").strip()
        if not content:
            raise ProviderError(self.name(), "Empty response content")

        logger.info(
            "%s turn %d: %.2fs, %s tokens",
            self.name(),
            round_number,
            latency,
            token_count,
        )
        return ModelResponse(
            provider=self.name(),
            model=self.model_string(),
            round_number=round_number,
            content=content,
            latency_sec=latency,
            token_count=token_count,
        )
