"""Append-only YAML output for sanitized chunks.

Each source file gets one output document of the form::

    chunks:
      - |-
        cleaned line 1
        cleaned line 2

Entries are appended one at a time and synced to disk before returning, so
an interrupted run keeps every chunk written so far.

Text containing characters a block literal cannot hold (form feeds and other
control characters from OCR output) is written as an escaped double-quoted
scalar emitted by PyYAML instead.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import TextIO

import yaml
from yaml.reader import Reader

HEADER = "chunks:\n"
ENTRY_MARKER = "  - |-\n"
# Explicit indentation (2 past the sequence) for text whose first line starts with a space
INDENTED_ENTRY_MARKER = "  - |2-\n"
LINE_INDENT = "    "
SEQUENCE_INDENT = "  "

# Everything YAML reads as a line break: CRLF, CR, NEL, LS, PS
_LINE_BREAKS = re.compile("\r\n|[\r\x85\u2028\u2029]")


def normalize_line_breaks(text: str) -> str:
    """Turn every YAML line break form into ``\\n``.

    Example:
        >>> normalize_line_breaks("a\\r\\nb\\rc\\u2028d")
        'a\\nb\\nc\\nd'
    """
    return _LINE_BREAKS.sub("\n", text)


def _needs_indent_indicator(lines: list[str]) -> bool:
    """Check whether YAML would misdetect the block's indentation.

    True when the first non-blank line starts with a space, or a
    whitespace-only line precedes it.
    """
    for line in lines:
        if line.strip():
            return line.startswith(" ")
        if line:
            return True
    return False


def _block_entry(text: str) -> str:
    lines = text.split("\n")
    marker = INDENTED_ENTRY_MARKER if _needs_indent_indicator(lines) else ENTRY_MARKER
    # Blank lines carry no indentation
    body = "".join(f"{LINE_INDENT}{line}\n" if line else "\n" for line in lines)
    return marker + body


def _quoted_entry(text: str) -> str:
    dumped = yaml.safe_dump(
        [text],
        default_style='"',
        allow_unicode=True,
        width=float("inf"),
    )
    return "".join(f"{SEQUENCE_INDENT}{line}\n" for line in dumped.rstrip("\n").split("\n"))


def format_entry(cleaned_text: str) -> str:
    """Render one list entry for the ``chunks:`` sequence.

    Line breaks are normalized to ``\\n`` first. Text YAML can print goes
    into a ``|-`` block literal; anything else falls back to a quoted scalar.
    """
    text = normalize_line_breaks(cleaned_text)
    if Reader.NON_PRINTABLE.search(text):
        return _quoted_entry(text)
    return _block_entry(text)


def output_path_for(source: Path, output_dir: Path, suffix: str = ".yaml") -> Path:
    """Return the output document path for a source file.

    Example:
        >>> output_path_for(Path("in/a.txt"), Path("out"))
        PosixPath('out/a.txt.yaml')
    """
    return output_dir / f"{source.name}{suffix}"


def _sync(f: TextIO) -> None:
    f.flush()
    os.fsync(f.fileno())


def write_header(output_path: Path) -> None:
    """Start an output document with the ``chunks:`` header.

    Does nothing when the document already has content, so appending to a
    document from an earlier run keeps a single top-level mapping.

    Args:
        output_path: Path to the YAML output document
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("a", encoding="utf-8") as f:
        if f.tell() > 0:
            return
        f.write(HEADER)
        _sync(f)


def append_chunk(output_path: Path, cleaned_text: str) -> None:
    """Append one sanitized chunk as a block-literal list entry.

    Internal line breaks are kept (as ``\\n``); each line is indented under
    the entry marker. There is no deduplication: appending the same text
    twice yields two entries.

    Args:
        output_path: Path to the YAML output document (created if absent)
        cleaned_text: Sanitized excerpt returned by the endpoint
    """
    entry = format_entry(cleaned_text)

    with output_path.open("a", encoding="utf-8") as f:
        f.write(entry)
        _sync(f)
