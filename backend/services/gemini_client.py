"""Google Gemini API wrapper: one JSON-mode round trip per call, no retries."""

import asyncio
import logging
from dataclasses import dataclass

from google import genai
from google.genai import errors, types

from config import settings
from services.errors import LLMTimeoutError, LLMUpstreamError, ServerMisconfigError

logger = logging.getLogger(__name__)

_client: genai.Client | None = None
_client_key: str = ""


@dataclass
class LLMResponse:
    """Raw model output plus the metadata reported back as telemetry."""
    text: str
    model: str
    temperature: float
    tokens_used: int = 0


def get_client() -> genai.Client:
    global _client, _client_key
    if not settings.gemini_api_key:
        logger.error("No GEMINI_API_KEY set")
        raise ServerMisconfigError("Missing GEMINI_API_KEY")
    if _client is None or _client_key != settings.gemini_api_key:
        _client = genai.Client(api_key=settings.gemini_api_key)
        _client_key = settings.gemini_api_key
    return _client


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if the model added one."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    return text


async def complete_json(
    prompt: str,
    *,
    temperature: float,
    max_output_tokens: int,
    model: str | None = None,
    system_instruction: str | None = None,
) -> LLMResponse:
    """Send a prompt to Gemini in JSON mode and return the response text.

    Raises LLMTimeoutError after settings.llm_timeout_seconds and
    LLMUpstreamError on any provider or transport failure. Parsing the
    text is left to the caller.
    """
    client = get_client()
    model = model or settings.gemini_model

    config = types.GenerateContentConfig(
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        response_mime_type="application/json",
        system_instruction=system_instruction,
    )

    try:
        response = await asyncio.wait_for(
            client.aio.models.generate_content(model=model, contents=prompt, config=config),
            timeout=settings.llm_timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.error("Gemini call timed out after %ss", settings.llm_timeout_seconds)
        raise LLMTimeoutError(body=f"No response within {settings.llm_timeout_seconds}s")
    except errors.APIError as e:
        logger.error("Gemini API error %s: %s", e.code, e.message)
        raise LLMUpstreamError(status=e.code, body=str(e.message or e))
    except Exception as e:
        logger.error("Gemini transport error: %s", e)
        raise LLMUpstreamError(body=str(e))

    usage = getattr(response, "usage_metadata", None)
    tokens_used = (getattr(usage, "total_token_count", None) or 0) if usage else 0

    return LLMResponse(
        text=strip_code_fences(response.text or ""),
        model=model,
        temperature=temperature,
        tokens_used=tokens_used,
    )
