"""Sanitizing request dispatcher with exponential backoff.

One chunk goes to one endpoint. The response is either a JSON object with a
``sanitizedBookExcerpt`` string, or ``{}`` when the endpoint found nothing
worth keeping. Endpoint failures are retried; malformed responses are not.

Retry schedule (defaults): up to 5 retries after the first attempt, waiting
``base_delay * 2**(attempt - 1)`` after failed attempt ``attempt``, i.e.
0.5s, 1s, 2s, 4s, 8s.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from book_sanitizer.sanitize import client
from book_sanitizer.sanitize.client import DispatchError, EndpointError

if TYPE_CHECKING:
    from openai import AsyncOpenAI

    from book_sanitizer.sanitize.endpoint import EndpointConfig
    from book_sanitizer.sanitize.templates import ChatTemplate

logger = logging.getLogger(__name__)

# Maximum number of retries after the first failed request
MAX_RETRIES = 5
# Initial delay between retries in seconds; doubles after each failure
BASE_DELAY_SECONDS = 0.5


# =============================================================================
# EXCEPTIONS
# =============================================================================


class MalformedResponseError(DispatchError):
    """Raised when a non-empty response is not a valid BookChunk (not retried)."""

    pass


class RetriesExhaustedError(DispatchError):
    """Raised when every attempt for a chunk failed."""

    pass


# =============================================================================
# RESPONSE PARSING
# =============================================================================


class BookChunk(BaseModel):
    """Structured response returned by the model for one chunk."""

    sanitizedBookExcerpt: str  # noqa: N815 - wire field name


def parse_response(raw: str) -> str | None:
    """Parse an endpoint response.

    Args:
        raw: Raw message content returned by the endpoint

    Returns:
        The sanitized excerpt, or None for an empty object (``{}``)

    Raises:
        MalformedResponseError: If the content is not a JSON object with a
            string ``sanitizedBookExcerpt`` field
    """
    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Response is not valid JSON: {e}") from e

    if data == {}:
        return None

    try:
        return BookChunk.model_validate(data).sanitizedBookExcerpt
    except ValidationError as e:
        raise MalformedResponseError(f"Response does not match BookChunk: {e}") from e


def backoff_delay(attempt: int, base_delay: float = BASE_DELAY_SECONDS) -> float:
    """Return the wait in seconds after failed attempt ``attempt`` (1-based)."""
    return base_delay * (2 ** (attempt - 1))


# =============================================================================
# DISPATCH
# =============================================================================


async def fetch_with_backoff(
    config: EndpointConfig,
    chunk: str,
    template: ChatTemplate,
    *,
    max_retries: int = MAX_RETRIES,
    base_delay: float = BASE_DELAY_SECONDS,
    llm: AsyncOpenAI | None = None,
) -> str | None:
    """Send a chunk to the endpoint, retrying failures with exponential backoff.

    Args:
        config: Endpoint configuration
        chunk: Text chunk to sanitize
        template: Prompt template
        max_retries: Retries after the first attempt (total tries = max_retries + 1)
        base_delay: Wait after the first failure, in seconds
        llm: Client shared across the endpoint run (see client.ask)

    Returns:
        The sanitized excerpt, or None when the endpoint returned ``{}``
        (the chunk should be skipped)

    Raises:
        MalformedResponseError: If a response cannot be parsed (no retry)
        RetriesExhaustedError: If all attempts failed
    """
    max_attempts = max_retries + 1
    last_error: EndpointError | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            raw = await client.ask(config, chunk, template, llm=llm)
        except EndpointError as e:
            last_error = e
            logger.warning(
                "Request to %s failed (attempt %d/%d): %s",
                config.name,
                attempt,
                max_attempts,
                e,
            )
        else:
            return parse_response(raw)

        if attempt < max_attempts:
            delay = backoff_delay(attempt, base_delay)
            logger.warning("Retrying %s in %dms...", config.name, round(delay * 1000))
            await asyncio.sleep(delay)

    raise RetriesExhaustedError(
        f"All retries failed for {config.name} after {max_attempts} attempts: {last_error}"
    )
