"""CLI for the book sanitizer.

Reads every .txt file in the input directory, splits it into ~500-token
chunks, asks each configured language model endpoint to sanitize the chunks,
and appends the results to ``<name>.txt.yaml`` in the output directory.

Examples:
    # One endpoint
    book-sanitizer -i books/ -o cleaned/ --config llama.yaml

    # Two endpoints running concurrently (output namespaced per endpoint)
    book-sanitizer -i books/ -o cleaned/ --config llama.yaml colab.yaml

    # Custom prompt template, smaller chunks, verbose console output
    book-sanitizer -i books/ -o cleaned/ --config llama.yaml \\
        --template my_template.yaml --max-tokens 300 -v
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path

# =============================================================================
# LOGGING SETUP
# =============================================================================

# Package logger; module loggers (book_sanitizer.*) propagate here
logger = logging.getLogger("book_sanitizer")


def _setup_logging(log_dir: Path | None = None, verbose: bool = False) -> Path:
    """Configure logging with file and console handlers.

    Args:
        log_dir: Directory for log files (default: ./logs/)
        verbose: If True, set console to INFO level

    Returns:
        Path to the log file
    """
    if log_dir is None:
        log_dir = Path("logs")
    log_dir.mkdir(parents=True, exist_ok=True)

    # Create timestamped log file
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"book_sanitizer_{timestamp}.log"

    logger.setLevel(logging.DEBUG)

    # File handler - captures everything with full detail
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler.setFormatter(file_formatter)

    # Console handler - retry diagnostics and errors unless --verbose
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    console_formatter = logging.Formatter("%(levelname)s: %(message)s")
    console_handler.setFormatter(console_formatter)

    # Clear existing handlers and add new ones
    logger.handlers.clear()
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.info(f"Logging initialized - log file: {log_file}")
    return log_file


def _log_exception(msg: str, exc: Exception) -> None:
    """Log an exception with full traceback to file.

    Args:
        msg: Context message describing what failed
        exc: The exception that was raised
    """
    logger.error(f"{msg}: {type(exc).__name__}: {exc}")
    logger.debug(f"Traceback:\n{traceback.format_exc()}")


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="book-sanitizer",
        description="Clean up excerpts from books formatted as txt",
    )

    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        required=True,
        help="Directory of .txt files to sanitize",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        required=True,
        help="Directory where .yaml files will be written",
    )
    parser.add_argument(
        "--config",
        type=Path,
        nargs="+",
        action="extend",
        required=True,
        metavar="FILE",
        help="One or more endpoint configuration files; each runs as its own worker",
    )
    parser.add_argument(
        "--template",
        type=str,
        default=None,
        help="Prompt template name or YAML file (default: book_txt_sanitizer)",
    )
    parser.add_argument(
        "--max-tokens",
        type=int,
        default=None,
        metavar="N",
        help="Maximum tokens per chunk (default: 500, from pyproject.toml)",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for log files (default: logs/)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress on the console",
    )

    return parser


def _run_sanitize(args: argparse.Namespace) -> int:
    """Run the sanitizer for every configured endpoint.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 once all endpoints finished, 1 for setup errors, 130 for interrupt)
    """
    # Import here to speed up --help
    from book_sanitizer.config import ConfigError, load_settings
    from book_sanitizer.sanitize.runner import run_endpoints
    from book_sanitizer.sanitize.templates import TemplateError, load_template

    input_dir: Path = args.input
    output_dir: Path = args.output
    config_paths: list[Path] = args.config

    if not input_dir.is_dir():
        print(f"Error: Input directory does not exist: {input_dir}", file=sys.stderr)
        return 1

    try:
        settings = load_settings()
        if args.max_tokens is not None:
            if args.max_tokens <= 0:
                print("Error: --max-tokens must be positive", file=sys.stderr)
                return 1
            settings = settings.model_copy(update={"chunk_max_tokens": args.max_tokens})
        template = load_template(args.template or settings.template)
    except (ConfigError, TemplateError) as e:
        _log_exception("Setup failed", e)
        return 1

    logger.info(
        "Sanitizing %s -> %s with %d endpoint(s), %d tokens per chunk",
        input_dir,
        output_dir,
        len(config_paths),
        settings.chunk_max_tokens,
    )

    try:
        outcomes = asyncio.run(
            run_endpoints(config_paths, input_dir, output_dir, template, settings)
        )
    except KeyboardInterrupt:
        print("\n\nInterrupted", file=sys.stderr)
        return 130  # Standard exit code for SIGINT

    for outcome in outcomes:
        if outcome.summary is not None:
            logger.info(
                "%s: %d files, %d chunks written, %d skipped",
                outcome.config_path,
                outcome.summary.files_processed,
                outcome.summary.chunks_written,
                outcome.summary.chunks_skipped,
            )

    # Per-endpoint failures are reported in the log, not via the exit code
    return 0


def main() -> None:
    """Run the book sanitizer."""
    parser = _create_parser()
    args = parser.parse_args()
    _setup_logging(args.log_dir, args.verbose)
    sys.exit(_run_sanitize(args))


if __name__ == "__main__":
    main()
