"""Project configuration loaded from pyproject.toml."""

from __future__ import annotations

import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel


class ConfigError(Exception):
    """Raised when a configuration file cannot be loaded or validated."""

    pass


class SanitizerSettings(BaseModel):
    """Tool-wide settings for book-sanitizer."""

    # Chunking parameters (tiktoken-based)
    chunk_max_tokens: int = 500
    tokenizer_model: str = "gpt-4"  # cl100k_base

    # Retry policy for endpoint requests
    max_retries: int = 5
    base_delay_seconds: float = 0.5

    # Input/output naming
    text_extensions: list[str] = [".txt"]
    output_suffix: str = ".yaml"

    # Prompt template (built-in name or path to a YAML file)
    template: str = "book_txt_sanitizer"


@lru_cache(maxsize=1)
def load_settings() -> SanitizerSettings:
    """Load settings from pyproject.toml.

    Returns:
        SanitizerSettings with values from the [tool.book-sanitizer] section,
        falling back to defaults if not found.

    Raises:
        ConfigError: If the section holds invalid values.
    """
    pyproject_path = _find_pyproject()
    if pyproject_path is None:
        return SanitizerSettings()

    with pyproject_path.open("rb") as f:
        data = tomllib.load(f)

    tool_config: dict[str, Any] = data.get("tool", {}).get("book-sanitizer", {})
    try:
        return SanitizerSettings(**tool_config)
    except ValueError as e:
        raise ConfigError(f"Invalid [tool.book-sanitizer] in {pyproject_path}: {e}") from e


def _find_pyproject() -> Path | None:
    """Find pyproject.toml by walking up from current file."""
    current = Path(__file__).resolve().parent
    for _ in range(10):  # Max 10 levels up
        candidate = current / "pyproject.toml"
        if candidate.exists():
            return candidate
        if current.parent == current:
            break
        current = current.parent
    return None
