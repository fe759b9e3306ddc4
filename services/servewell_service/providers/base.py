"""LLM provider access for the scoring oracle.

Calls go through LiteLLM so the same code works with OpenAI, Anthropic,
Google, or any supported provider.
"""

import json
import time
from typing import Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


class AIProviderResponse:
    """Standardized response from any AI provider."""

    def __init__(
        self,
        content: str,
        model: str,
        input_tokens: int = 0,
        output_tokens: int = 0,
        latency_ms: int = 0,
    ):
        self.content = content
        self.model = model
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.latency_ms = latency_ms

    def parse_json(self) -> dict:
        """Parse the content as JSON. Handles markdown code blocks."""
        text = self.content.strip()
        if text.startswith("```"):
            lines = [line for line in text.split("\n") if not line.strip().startswith("```")]
            text = "\n".join(lines).strip()
        return json.loads(text)


async def call_llm(
    system_prompt: str,
    user_prompt: str,
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: int = 4096,
    response_format: Optional[dict] = None,
) -> AIProviderResponse:
    """
    Call an LLM via LiteLLM and return the normalized response.

    Errors propagate to the caller; the scoring adapter owns the fallback.
    """
    import litellm

    settings = get_settings()
    model = model or settings.AI_DEFAULT_MODEL

    kwargs = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": settings.AI_TEMPERATURE if temperature is None else temperature,
        "max_tokens": max_tokens,
    }
    if response_format:
        kwargs["response_format"] = response_format

    start = time.monotonic()
    try:
        response = await litellm.acompletion(**kwargs)
    except Exception as e:
        logger.error(
            "LLM call failed after %dms: %s",
            int((time.monotonic() - start) * 1000),
            e,
            extra={"extra_fields": {"model": model}},
        )
        raise

    usage = response.usage
    return AIProviderResponse(
        content=response.choices[0].message.content or "",
        model=model,
        input_tokens=usage.prompt_tokens if usage else 0,
        output_tokens=usage.completion_tokens if usage else 0,
        latency_ms=int((time.monotonic() - start) * 1000),
    )
