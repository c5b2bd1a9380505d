"""OpenAI chat completions via the openai SDK.

Also serves any OpenAI-compatible endpoint (xAI Grok, DeepSeek) when the
model config carries a base_url.
"""

from typing import Any

from openai import AsyncOpenAI

from lovens_hule.providers.base import SDKProvider


class OpenAIProvider(SDKProvider):
    def _make_client(self, api_key: str) -> AsyncOpenAI:
        if self._config.base_url:
            return AsyncOpenAI(api_key=api_key, base_url=self._config.base_url)
        return AsyncOpenAI(api_key=api_key)

    async def _complete(self, prompt: str, system: str | None) -> Any:
        messages = [{"role": "user", "content": prompt}]
        if system:
            messages.insert(0, {"role": "system", "content": system})
        return await self._client.chat.completions.create(
            model=self._config.model,
            messages=messages,
            max_tokens=self._config.max_tokens,
            temperature=self._config.temperature,
        )

    def _extract(self, response: Any) -> tuple[str, int | None]:
        choice = response.choices[0] if response.choices else None
        text = choice.message.content if choice else ""
        tokens = response.usage.total_tokens if response.usage else None
        return text, tokens
