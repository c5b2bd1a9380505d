"""Google Gemini via the google-genai SDK."""

from typing import Any

from google import genai
from google.genai import types as genai_types

from lovens_hule.providers.base import SDKProvider


class GeminiProvider(SDKProvider):
    def _make_client(self, api_key: str) -> genai.Client:
        return genai.Client(api_key=api_key)

    async def _complete(self, prompt: str, system: str | None) -> Any:
        return await self._client.aio.models.generate_content(
            model=self._config.model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(
                max_output_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
                system_instruction=system,
            ),
        )

    def _extract(self, response: Any) -> tuple[str, int | None]:
        usage = response.usage_metadata
        return response.text or "", usage.total_token_count if usage else None
