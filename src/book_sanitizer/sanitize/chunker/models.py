"""Data models for the chunking and sanitizing pipeline.

- Chunk: One token-bounded text segment of a source document
- FileSummary: Counts for one sanitized source file
- RunSummary: Counts for one endpoint's pass over the input directory
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class Chunk:
    """Single chunk of source text.

    Attributes:
        index: Position within the document (0-indexed)
        text: Raw chunk text as sent to the endpoint
        token_count: tiktoken count of ``text``
    """

    index: int
    text: str
    token_count: int


@dataclass
class FileSummary:
    """Statistics for one sanitized file.

    Attributes:
        source: Input text file
        output: YAML output document
        chunks_sent: Chunks dispatched to the endpoint
        chunks_written: Chunks appended to the output document
        chunks_skipped: Chunks the endpoint answered with an empty object
    """

    source: Path
    output: Path
    chunks_sent: int = 0
    chunks_written: int = 0
    chunks_skipped: int = 0


@dataclass
class RunSummary:
    """Statistics for one endpoint's run over an input directory."""

    endpoint: str
    files: list[FileSummary] = field(default_factory=list)

    @property
    def files_processed(self) -> int:
        return len(self.files)

    @property
    def chunks_written(self) -> int:
        return sum(f.chunks_written for f in self.files)

    @property
    def chunks_skipped(self) -> int:
        return sum(f.chunks_skipped for f in self.files)
