"""Token counting utilities using tiktoken.

Counts use the encoding of a tokenizer model (``gpt-4`` -> cl100k_base,
``gpt-4o`` -> o200k_base), the same one the splitter sizes chunks with.
"""

from __future__ import annotations

import tiktoken

DEFAULT_TOKENIZER_MODEL = "gpt-4"  # cl100k_base

# Global tiktoken encoders by model name (cached for performance)
_TIKTOKEN_ENCODERS: dict[str, tiktoken.Encoding] = {}


def _get_encoder(model: str = DEFAULT_TOKENIZER_MODEL) -> tiktoken.Encoding:
    """Get or create the tiktoken encoder for a model (cached for performance).

    Args:
        model: Tokenizer model name, e.g. "gpt-4"

    Returns:
        tiktoken.Encoding instance

    Raises:
        KeyError: If tiktoken has no encoding for the model
    """
    encoder = _TIKTOKEN_ENCODERS.get(model)
    if encoder is None:
        encoder = tiktoken.encoding_for_model(model)
        _TIKTOKEN_ENCODERS[model] = encoder
    return encoder


def count_tokens(text: str, model: str = DEFAULT_TOKENIZER_MODEL) -> int:
    """Count tokens in text using tiktoken.

    Args:
        text: Text to count tokens for
        model: Tokenizer model whose encoding is used

    Returns:
        Number of tokens (0 for empty string)
    """
    if not text:
        return 0
    encoder = _get_encoder(model)
    # Special-token strings in book text are counted as plain text
    return len(encoder.encode(text, disallowed_special=()))
