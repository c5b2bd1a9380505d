"""Anthropic Claude messages via the anthropic SDK."""

from typing import Any

import anthropic as anthropic_sdk

from lovens_hule.providers.base import SDKProvider


class AnthropicProvider(SDKProvider):
    def _make_client(self, api_key: str) -> anthropic_sdk.AsyncAnthropic:
        return anthropic_sdk.AsyncAnthropic(api_key=api_key)

    async def _complete(self, prompt: str, system: str | None) -> Any:
        request: dict[str, Any] = {
            "model": self._config.model,
            "max_tokens": self._config.max_tokens,
            "temperature": self._config.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        # the persona goes in the top-level system field, not a message
        if system:
            request["system"] = system
        return await self._client.messages.create(**request)

    def _extract(self, response: Any) -> tuple[str, int | None]:
        text = "\n".join(b.text for b in response.content or [] if b.type == "text")
        usage = response.usage
        tokens = usage.input_tokens + usage.output_tokens if usage else None
        return text, tokens
