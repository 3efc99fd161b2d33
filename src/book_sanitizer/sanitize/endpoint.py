"""Endpoint configuration for OpenAI-compatible language model backends.

Each ``--config`` file describes one backend (a local llama.cpp / vLLM
server, a hosted API, ...). The file is YAML and is validated into a frozen
EndpointConfig, loaded once per run.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from book_sanitizer.config import ConfigError

# Local OpenAI-compatible servers usually ignore the key, but the SDK requires one
PLACEHOLDER_API_KEY = "sk-no-key-required"


class EndpointConfig(BaseModel):
    """Connection and sampling parameters for one endpoint.

    Attributes:
        name: Human-readable endpoint name (defaults to the config file stem)
        api_base: Base URL of the OpenAI-compatible API (e.g. http://localhost:5001/v1)
        api_key: API key; falls back to OPENAI_API_KEY when unset
        model: Model name sent with each request
        temperature: Sampling temperature (server default when unset)
        max_tokens: Maximum tokens in the response (server default when unset)
        stop_words: Stop sequences passed to the API
        timeout_seconds: Per-request timeout
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = "default"
    api_base: str
    api_key: str | None = None
    model: str
    temperature: float | None = None
    max_tokens: int | None = Field(default=None, gt=0)
    stop_words: list[str] = Field(default_factory=list)
    timeout_seconds: float = Field(default=120.0, gt=0)


def resolve_api_key(config: EndpointConfig) -> str:
    """Return the API key for an endpoint.

    Uses the key from the config file when present, otherwise OPENAI_API_KEY
    from the environment or a .env file, otherwise a placeholder for keyless
    local servers.
    """
    if config.api_key:
        return config.api_key

    from dotenv import load_dotenv

    load_dotenv()
    return os.getenv("OPENAI_API_KEY") or PLACEHOLDER_API_KEY


def load_endpoint_config(path: Path) -> EndpointConfig:
    """Load and validate an endpoint configuration file.

    Args:
        path: Path to a YAML configuration file

    Returns:
        EndpointConfig; ``name`` defaults to the file stem when not set

    Raises:
        ConfigError: If the file is missing, is not a YAML mapping, or fails validation
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e

    try:
        data: Any = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a YAML mapping")

    data.setdefault("name", path.stem)
    try:
        return EndpointConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e}") from e
