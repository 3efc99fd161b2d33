"""Run the file-set driver concurrently against several endpoints.

Every configured endpoint gets its own asyncio task over the same input
directory. Tasks share no state; a failing endpoint is logged and does not
cancel the others.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from book_sanitizer.config import ConfigError, SanitizerSettings
from book_sanitizer.sanitize.driver import process_files
from book_sanitizer.sanitize.endpoint import EndpointConfig, load_endpoint_config

if TYPE_CHECKING:
    from book_sanitizer.sanitize.chunker import RunSummary
    from book_sanitizer.sanitize.templates import ChatTemplate

logger = logging.getLogger(__name__)


@dataclass
class EndpointOutcome:
    """Result of one endpoint's run.

    Attributes:
        config_path: Configuration file the endpoint was loaded from
        output_dir: Directory the endpoint wrote to (None if it never started)
        summary: Run statistics when the run completed
        error: Exception that stopped the run, if any
    """

    config_path: Path
    output_dir: Path | None = None
    summary: RunSummary | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def assign_output_dirs(endpoints: list[EndpointConfig], output_dir: Path) -> list[Path]:
    """Choose an output directory per endpoint.

    A single endpoint writes straight into ``output_dir``. Several endpoints
    each get ``output_dir/<name>`` so their entries never interleave in one
    document; repeated names get a numeric suffix.
    """
    if len(endpoints) <= 1:
        return [output_dir for _ in endpoints]

    seen: dict[str, int] = {}
    dirs: list[Path] = []
    for endpoint in endpoints:
        count = seen.get(endpoint.name, 0) + 1
        seen[endpoint.name] = count
        name = endpoint.name if count == 1 else f"{endpoint.name}-{count}"
        dirs.append(output_dir / name)
    return dirs


async def run_endpoints(
    config_paths: list[Path],
    input_dir: Path,
    output_dir: Path,
    template: ChatTemplate,
    settings: SanitizerSettings | None = None,
) -> list[EndpointOutcome]:
    """Sanitize ``input_dir`` once per endpoint, all endpoints concurrently.

    Args:
        config_paths: Endpoint configuration files (zero or more)
        input_dir: Directory containing source text files
        output_dir: Root directory for YAML output
        template: Prompt template shared by all endpoints
        settings: Tool settings (defaults when not provided)

    Returns:
        One EndpointOutcome per config path, in the given order
    """
    if settings is None:
        settings = SanitizerSettings()

    outcomes = [EndpointOutcome(config_path=path) for path in config_paths]

    loaded: list[tuple[EndpointOutcome, EndpointConfig]] = []
    for outcome in outcomes:
        try:
            endpoint = load_endpoint_config(outcome.config_path)
        except ConfigError as e:
            logger.error("Config load error: %s", e)
            outcome.error = e
            continue
        loaded.append((outcome, endpoint))

    endpoint_dirs = assign_output_dirs([endpoint for _, endpoint in loaded], output_dir)
    for (outcome, endpoint), endpoint_dir in zip(loaded, endpoint_dirs, strict=True):
        outcome.output_dir = endpoint_dir
        logger.info("Starting endpoint %s -> %s", endpoint.name, endpoint_dir)

    results = await asyncio.gather(
        *(
            process_files(input_dir, endpoint_dir, endpoint, template, settings)
            for (_, endpoint), endpoint_dir in zip(loaded, endpoint_dirs, strict=True)
        ),
        return_exceptions=True,
    )

    for (outcome, endpoint), result in zip(loaded, results, strict=True):
        if isinstance(result, BaseException):
            logger.error("Error in task %s: %s: %s", endpoint.name, type(result).__name__, result)
            outcome.error = result
        else:
            outcome.summary = result

    return outcomes
