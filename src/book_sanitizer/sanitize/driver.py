"""Per-endpoint driver: sanitize every text file in a directory.

Files are handled one after another in lexicographic filename order, and
each file's chunks strictly in source order: chunk -> dispatch -> append.
A fatal dispatch error stops the whole run for this endpoint; output
written up to that point stays on disk.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

from book_sanitizer.config import SanitizerSettings
from book_sanitizer.sanitize.chunker import Chunk, ChunkSequence, FileSummary, RunSummary
from book_sanitizer.sanitize.client import create_client
from book_sanitizer.sanitize.dispatcher import fetch_with_backoff
from book_sanitizer.sanitize.yaml_writer import append_chunk, output_path_for, write_header

if TYPE_CHECKING:
    from openai import AsyncOpenAI

    from book_sanitizer.sanitize.endpoint import EndpointConfig
    from book_sanitizer.sanitize.templates import ChatTemplate

logger = logging.getLogger(__name__)


def discover_text_files(input_dir: Path, extensions: list[str]) -> list[Path]:
    """List regular files in ``input_dir`` with a recognized extension.

    Subdirectories and other files are ignored. Matching is case-insensitive.

    Returns:
        Files sorted by filename
    """
    suffixes = {ext.lower() for ext in extensions}
    return sorted(
        (p for p in input_dir.iterdir() if p.is_file() and p.suffix.lower() in suffixes),
        key=lambda p: p.name,
    )


def _read_chunks(source: Path, settings: SanitizerSettings) -> list[Chunk]:
    contents = source.read_text(encoding="utf-8")
    return list(
        ChunkSequence(
            contents,
            max_tokens=settings.chunk_max_tokens,
            model=settings.tokenizer_model,
        )
    )


async def sanitize_file(
    source: Path,
    output_path: Path,
    endpoint: EndpointConfig,
    template: ChatTemplate,
    settings: SanitizerSettings,
    llm: AsyncOpenAI | None = None,
) -> FileSummary:
    """Sanitize one text file into its YAML output document.

    Reading, splitting and appending run in worker threads so other
    endpoint tasks keep running meanwhile.

    Raises:
        OSError: If the source cannot be read or the output cannot be written
        DispatchError: If a chunk cannot be sanitized
    """
    chunks = await asyncio.to_thread(_read_chunks, source, settings)
    summary = FileSummary(source=source, output=output_path)

    await asyncio.to_thread(write_header, output_path)

    for chunk in chunks:
        if not chunk.text.strip():
            continue

        summary.chunks_sent += 1
        sanitized = await fetch_with_backoff(
            endpoint,
            chunk.text,
            template,
            max_retries=settings.max_retries,
            base_delay=settings.base_delay_seconds,
            llm=llm,
        )

        if sanitized is None:
            logger.debug("%s: chunk %d returned no content, skipped", source.name, chunk.index)
            summary.chunks_skipped += 1
            continue

        await asyncio.to_thread(append_chunk, output_path, sanitized)
        summary.chunks_written += 1

    return summary


async def process_files(
    input_dir: Path,
    output_dir: Path,
    endpoint: EndpointConfig,
    template: ChatTemplate,
    settings: SanitizerSettings | None = None,
) -> RunSummary:
    """Sanitize all text files in a directory with one endpoint.

    Args:
        input_dir: Directory containing source text files
        output_dir: Directory for YAML output documents (created if absent)
        endpoint: Endpoint configuration
        template: Prompt template
        settings: Tool settings (defaults when not provided)

    Returns:
        RunSummary with per-file statistics

    Raises:
        FileNotFoundError: If input_dir does not exist
        OSError: On other filesystem errors
        DispatchError: If a chunk cannot be sanitized; remaining files are not processed
    """
    if settings is None:
        settings = SanitizerSettings()

    if not input_dir.is_dir():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")

    output_dir.mkdir(parents=True, exist_ok=True)

    files = discover_text_files(input_dir, settings.text_extensions)
    logger.info("[%s] %d files to sanitize in %s", endpoint.name, len(files), input_dir)

    run = RunSummary(endpoint=endpoint.name)
    start_time = time.perf_counter()

    # One client (and API key lookup) for the whole run
    async with create_client(endpoint) as llm:
        for i, source in enumerate(files, 1):
            output_path = output_path_for(source, output_dir, settings.output_suffix)
            logger.info("[%s] [%d/%d] %s", endpoint.name, i, len(files), source.name)

            file_summary = await sanitize_file(
                source, output_path, endpoint, template, settings, llm
            )
            run.files.append(file_summary)

            logger.info(
                "[%s] %s: %d chunks written, %d skipped",
                endpoint.name,
                source.name,
                file_summary.chunks_written,
                file_summary.chunks_skipped,
            )

    elapsed = time.perf_counter() - start_time
    logger.info(
        "[%s] Complete: %d files, %d chunks in %.1fs",
        endpoint.name,
        run.files_processed,
        run.chunks_written,
        elapsed,
    )
    return run
