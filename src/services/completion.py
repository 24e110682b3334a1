import time
from functools import lru_cache
from typing import Protocol
from loguru import logger
from openai import AsyncOpenAI, OpenAIError
from ..core.config import settings
from ..core.errors import CompletionError


class Completer(Protocol):
    async def complete(self, system: str, prompt: str, temperature: float, max_tokens: int) -> str: ...


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ``` or ```json markdown fence from a completion."""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json"):]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


class CompletionClient:
    """Single-shot chat completion against an OpenAI-compatible endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ):
        self.model = model or settings.llm_model
        # No retries: the caller owns retry policy
        self._client = AsyncOpenAI(
            api_key=api_key or settings.llm_api_key,
            base_url=base_url or settings.llm_base_url,
            timeout=timeout or settings.llm_timeout_seconds,
            max_retries=0,
        )

    async def complete(self, system: str, prompt: str, temperature: float, max_tokens: int) -> str:
        t0 = time.monotonic()
        try:
            completion = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            ms = int((time.monotonic() - t0) * 1000)
            logger.warning(f"Completion request failed after {ms}ms: {e}")
            raise CompletionError(f"Completion request failed: {e}", {"model": self.model}) from e

        content = completion.choices[0].message.content if completion.choices else None
        text = (content or "").strip()
        ms = int((time.monotonic() - t0) * 1000)
        logger.info("Completion finished", model=self.model, elapsed_ms=ms, empty=not text)
        if not text:
            raise CompletionError("Empty response from completion service", {"model": self.model})
        return text


@lru_cache(maxsize=1)
def get_completion_client() -> CompletionClient:
    """Shared client so the HTTP connection pool is reused across requests."""
    return CompletionClient()
