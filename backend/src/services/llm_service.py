"""Anthropic client used for narrative recommendations."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import lru_cache

import tiktoken
from anthropic import AsyncAnthropic
from fastapi import HTTPException, status

from src.core.config import Settings, get_settings
from src.core.structured_logging import log_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LlmCompletion:
    text: str
    model: str
    input_tokens: int
    output_tokens: int
    duration_ms: int


@lru_cache
def _encoding():
    return tiktoken.get_encoding("cl100k_base")


def _message_text(message) -> str:
    parts = [getattr(block, "text", None) for block in getattr(message, "content", None) or []]
    return "\n".join(p for p in parts if p).strip()


class LlmService:
    """Single-shot completions with a bounded prompt size."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def llm_available(self) -> bool:
        if not self.settings.llm_enabled or self.settings.llm_provider != "anthropic":
            return False
        return bool(self.settings.anthropic_api_key)

    def count_tokens(self, text: str) -> int:
        if not text:
            return 0
        return len(_encoding().encode(text))

    def fit_prompt(self, text: str, max_tokens: int) -> str:
        """Cut text to at most max_tokens tokens, keeping the beginning."""
        if max_tokens <= 0:
            return ""
        tokens = _encoding().encode(text)
        if len(tokens) <= max_tokens:
            return text
        log_json(
            logger,
            logging.INFO,
            "llm_prompt_truncated",
            prompt_tokens=len(tokens),
            max_tokens=max_tokens,
        )
        return _encoding().decode(tokens[:max_tokens])

    async def generate(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        max_output_tokens: int | None = None,
    ) -> LlmCompletion:
        """Run one completion.

        Raises:
            HTTPException: 503 when no provider is configured, 502 when the
                provider call fails
        """
        if not self.llm_available():
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="LLM is unavailable",
            )

        client = AsyncAnthropic(api_key=self.settings.anthropic_api_key)
        started = time.perf_counter()
        try:
            # Tokenizer failures are reported like provider failures
            budget = self.settings.llm_max_input_tokens - self.count_tokens(system_prompt)
            user_prompt = self.fit_prompt(user_prompt, budget)
            message = await client.messages.create(
                model=self.settings.llm_model,
                max_tokens=max_output_tokens or self.settings.llm_max_output_tokens,
                temperature=self.settings.llm_temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except Exception as exc:
            log_json(logger, logging.WARNING, "llm_provider_error", error=str(exc))
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="LLM provider error",
            ) from exc

        text = _message_text(message)
        usage = getattr(message, "usage", None)
        return LlmCompletion(
            text=text,
            model=self.settings.llm_model,
            input_tokens=getattr(usage, "input_tokens", None)
            or self.count_tokens(system_prompt + "\n" + user_prompt),
            output_tokens=getattr(usage, "output_tokens", None) or self.count_tokens(text),
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
