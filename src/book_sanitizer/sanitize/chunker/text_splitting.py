"""Token-bounded splitting of source documents.

Boundary selection (paragraphs, then sentences, then words) is delegated to
semantic-text-splitter, sized with the tiktoken encoding of ``model``.
Splitting runs with ``trim=False`` and no overlap, so the chunk texts
concatenate back to the original document.
"""

from __future__ import annotations

from collections.abc import Iterator
from functools import lru_cache

from semantic_text_splitter import TextSplitter

from book_sanitizer.sanitize.chunker.models import Chunk
from book_sanitizer.sanitize.chunker.token_counting import DEFAULT_TOKENIZER_MODEL, count_tokens

DEFAULT_MAX_TOKENS = 500


@lru_cache(maxsize=8)
def _get_splitter(model: str, max_tokens: int) -> TextSplitter:
    """Get or create a splitter for a tokenizer model and capacity."""
    return TextSplitter.from_tiktoken_model(model, max_tokens, trim=False)


class ChunkSequence:
    """Lazy, restartable sequence of chunks for one document.

    Nothing is split until iteration starts, and every iteration splits the
    text again from the start.

    Example:
        >>> chunks = ChunkSequence("Short text.", max_tokens=500)
        >>> [c.text for c in chunks]
        ['Short text.']
    """

    def __init__(
        self,
        text: str,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        model: str = DEFAULT_TOKENIZER_MODEL,
    ) -> None:
        if max_tokens <= 0:
            raise ValueError("max_tokens must be positive")
        self.text = text
        self.max_tokens = max_tokens
        self.model = model

    def __iter__(self) -> Iterator[Chunk]:
        if not self.text.strip():
            return
        splitter = _get_splitter(self.model, self.max_tokens)
        for index, segment in enumerate(splitter.chunks(self.text)):
            yield Chunk(index=index, text=segment, token_count=count_tokens(segment, self.model))

    def __repr__(self) -> str:
        return (
            f"ChunkSequence(chars={len(self.text)}, max_tokens={self.max_tokens}, "
            f"model={self.model!r})"
        )
