"""Chunker package - token-bounded chunks of source documents.

Public API:
- Chunk: Single chunk with its position and token count
- ChunkSequence: Lazy, restartable chunk sequence for one document
- FileSummary / RunSummary: Per-file and per-endpoint statistics
- count_tokens: Token counting utility
"""

from book_sanitizer.sanitize.chunker.models import Chunk, FileSummary, RunSummary
from book_sanitizer.sanitize.chunker.text_splitting import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TOKENIZER_MODEL,
    ChunkSequence,
)
from book_sanitizer.sanitize.chunker.token_counting import count_tokens

__all__ = [
    # Constants
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TOKENIZER_MODEL",
    # Models
    "Chunk",
    "FileSummary",
    "RunSummary",
    # Chunking
    "ChunkSequence",
    "count_tokens",
]
