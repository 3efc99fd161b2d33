"""OpenAI-compatible chat completion client.

Sends one chunk per request and returns the raw response text. Retrying is
left to the dispatcher: the SDK's own retries are disabled and every SDK or
transport failure surfaces as EndpointError.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from openai import APIError, AsyncOpenAI

from book_sanitizer.sanitize.endpoint import EndpointConfig, resolve_api_key

if TYPE_CHECKING:
    from book_sanitizer.sanitize.templates import ChatTemplate

logger = logging.getLogger(__name__)


class DispatchError(Exception):
    """Base exception for all request dispatch errors."""

    pass


class EndpointError(DispatchError):
    """Raised when the endpoint is unreachable or returns an error (retryable)."""

    pass


def build_messages(text: str, template: ChatTemplate) -> list[dict[str, str]]:
    """Build chat messages for one chunk.

    Order: system prompt, template messages, then the chunk wrapped in the
    template's pre/post user content.
    """
    messages = [{"role": "system", "content": template.system_prompt}]
    messages.extend({"role": m.role, "content": m.content} for m in template.messages)
    messages.append({"role": "user", "content": template.user_content(text)})
    return messages


def create_client(config: EndpointConfig) -> AsyncOpenAI:
    """Create an async OpenAI client for an endpoint.

    The API key is resolved here, so one client serves every request of an
    endpoint run.
    """
    return AsyncOpenAI(
        base_url=config.api_base,
        api_key=resolve_api_key(config),
        timeout=httpx.Timeout(config.timeout_seconds),
        max_retries=0,
    )


async def ask(
    config: EndpointConfig,
    text: str,
    template: ChatTemplate,
    *,
    llm: AsyncOpenAI | None = None,
) -> str:
    """Send one chunk to the endpoint and return the response content.

    Args:
        config: Endpoint configuration
        text: Chunk text to sanitize
        template: Prompt template
        llm: Client shared across requests; when omitted a client is created
            for this request and closed afterwards

    Returns:
        Raw message content of the first choice

    Raises:
        EndpointError: On transport or API errors, or a response without content
    """
    request: dict[str, Any] = {
        "model": config.model,
        "messages": build_messages(text, template),
    }
    if template.response_format is not None:
        request["response_format"] = template.response_format
    if config.temperature is not None:
        request["temperature"] = config.temperature
    if config.max_tokens is not None:
        request["max_tokens"] = config.max_tokens
    if config.stop_words:
        request["stop"] = config.stop_words

    owned = llm is None
    if llm is None:
        llm = create_client(config)
    try:
        response = await llm.chat.completions.create(**request)
    except (APIError, httpx.HTTPError) as e:
        raise EndpointError(f"{type(e).__name__}: {e}") from e
    finally:
        if owned:
            await llm.close()

    if not response.choices or response.choices[0].message.content is None:
        raise EndpointError(f"Endpoint {config.name} returned no content")

    content = response.choices[0].message.content
    logger.debug("Endpoint %s returned %d chars", config.name, len(content))
    return content
