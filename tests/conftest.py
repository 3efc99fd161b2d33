"""Shared pytest fixtures for book-sanitizer tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from book_sanitizer.config import SanitizerSettings
from book_sanitizer.sanitize.endpoint import EndpointConfig
from book_sanitizer.sanitize.templates import ChatTemplate, load_template

FIXTURES_DIR = Path(__file__).parent / "fixtures"
BOOKS_DIR = FIXTURES_DIR / "books"
CONFIGS_DIR = FIXTURES_DIR / "configs"
TEMPLATES_DIR = FIXTURES_DIR / "templates"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def configs_dir() -> Path:
    """Return path to endpoint config fixtures."""
    return CONFIGS_DIR


@pytest.fixture
def templates_dir() -> Path:
    """Return path to prompt template fixtures."""
    return TEMPLATES_DIR


@pytest.fixture
def ocr_excerpt_text() -> str:
    """Load the OCR'd book excerpt fixture (several paragraphs, OCR noise)."""
    return (BOOKS_DIR / "ocr_excerpt.txt").read_text(encoding="utf-8")


# =============================================================================
# ENDPOINT FIXTURES
# =============================================================================


@pytest.fixture
def endpoint_config() -> EndpointConfig:
    """Endpoint pointing at a local OpenAI-compatible server."""
    return EndpointConfig(
        name="local",
        api_base="http://localhost:5001/v1",
        model="test-model",
    )


@pytest.fixture
def write_endpoint_config(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture writing endpoint config YAML files into tmp_path.

    Usage:
        def test_something(write_endpoint_config):
            path = write_endpoint_config("alpha", model="m1")
    """

    def _write(stem: str, **fields: Any) -> Path:
        data = {"api_base": f"http://{stem}.local/v1", "model": "test-model", **fields}
        path = tmp_path / "configs" / f"{stem}.yaml"
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = [f"{key}: {json.dumps(value)}" for key, value in data.items()]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def template() -> ChatTemplate:
    """The built-in book_txt_sanitizer template."""
    return load_template()


@pytest.fixture
def settings() -> SanitizerSettings:
    """Default settings with no backoff wait."""
    return SanitizerSettings(base_delay_seconds=0.0)


# =============================================================================
# RESPONSE HELPERS
# =============================================================================


def excerpt_json(text: str) -> str:
    """Serialize an excerpt the way the endpoint returns it."""
    return json.dumps({"sanitizedBookExcerpt": text})


@pytest.fixture
def echo_ask() -> Callable[..., Any]:
    """Fake ``client.ask`` returning each chunk upper-cased as a BookChunk."""

    async def _ask(
        config: EndpointConfig, text: str, template: ChatTemplate, llm: Any = None
    ) -> str:
        return excerpt_json(text.strip().upper())

    return _ask
