"""Unit tests for the book-sanitizer CLI."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from book_sanitizer.sanitize.cli import _create_parser, _run_sanitize, _setup_logging, main

ASK = "book_sanitizer.sanitize.client.ask"


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    yield
    package_logger = logging.getLogger("book_sanitizer")
    for handler in package_logger.handlers:
        handler.close()
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def input_dir(tmp_path: Path) -> Path:
    path = tmp_path / "input"
    path.mkdir()
    (path / "a.txt").write_text("Tbe first page.", encoding="utf-8")
    return path


# =============================================================================
# PARSER TESTS
# =============================================================================


class TestParser:
    """Tests for argument parsing."""

    @pytest.mark.unit
    def test_required_arguments(self) -> None:
        parser = _create_parser()
        args = parser.parse_args(["-i", "in", "-o", "out", "--config", "a.yaml"])
        assert args.input == Path("in")
        assert args.output == Path("out")
        assert args.config == [Path("a.yaml")]
        assert args.template is None
        assert args.max_tokens is None
        assert args.verbose is False

    @pytest.mark.unit
    def test_several_configs_after_one_flag(self) -> None:
        parser = _create_parser()
        args = parser.parse_args(
            ["--input", "in", "--output", "out", "--config", "llama.yaml", "colab.yaml"]
        )
        assert args.config == [Path("llama.yaml"), Path("colab.yaml")]

    @pytest.mark.unit
    def test_repeated_config_flags(self) -> None:
        parser = _create_parser()
        args = parser.parse_args(
            ["-i", "in", "-o", "out", "--config", "a.yaml", "--config", "b.yaml"]
        )
        assert args.config == [Path("a.yaml"), Path("b.yaml")]

    @pytest.mark.unit
    def test_config_required(self) -> None:
        parser = _create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["-i", "in", "-o", "out"])

    @pytest.mark.unit
    def test_optional_arguments(self) -> None:
        parser = _create_parser()
        args = parser.parse_args(
            [
                "-i", "in", "-o", "out", "--config", "a.yaml",
                "--template", "t.yaml", "--max-tokens", "300", "--log-dir", "l", "-v",
            ]
        )  # fmt: skip
        assert args.template == "t.yaml"
        assert args.max_tokens == 300
        assert args.log_dir == Path("l")
        assert args.verbose is True


# =============================================================================
# LOGGING TESTS
# =============================================================================


class TestSetupLogging:
    """Tests for _setup_logging()."""

    @pytest.mark.unit
    def test_creates_log_file(self, tmp_path: Path) -> None:
        log_file = _setup_logging(tmp_path / "logs")
        assert log_file.parent == tmp_path / "logs"
        assert log_file.name.startswith("book_sanitizer_")
        assert log_file.exists()

    @pytest.mark.unit
    def test_console_level(self, tmp_path: Path) -> None:
        _setup_logging(tmp_path, verbose=False)
        levels = [h.level for h in logging.getLogger("book_sanitizer").handlers]
        assert levels == [logging.DEBUG, logging.WARNING]

        _setup_logging(tmp_path, verbose=True)
        levels = [h.level for h in logging.getLogger("book_sanitizer").handlers]
        assert levels == [logging.DEBUG, logging.INFO]


# =============================================================================
# RUN TESTS
# =============================================================================


class TestRunSanitize:
    """Tests for _run_sanitize() and main()."""

    @pytest.mark.unit
    def test_missing_input_dir(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        args = _create_parser().parse_args(
            ["-i", str(tmp_path / "nope"), "-o", str(tmp_path), "--config", "a.yaml"]
        )
        assert _run_sanitize(args) == 1
        assert "Input directory does not exist" in capsys.readouterr().err

    @pytest.mark.unit
    def test_unknown_template(self, tmp_path: Path, input_dir: Path) -> None:
        args = _create_parser().parse_args(
            ["-i", str(input_dir), "-o", str(tmp_path), "--config", "a.yaml",
             "--template", "no_such_template"]
        )  # fmt: skip
        assert _run_sanitize(args) == 1

    @pytest.mark.unit
    def test_non_positive_max_tokens(self, tmp_path: Path, input_dir: Path) -> None:
        args = _create_parser().parse_args(
            ["-i", str(input_dir), "-o", str(tmp_path), "--config", "a.yaml",
             "--max-tokens", "0"]
        )  # fmt: skip
        assert _run_sanitize(args) == 1

    @pytest.mark.unit
    def test_sanitizes_and_exits_zero(
        self,
        tmp_path: Path,
        input_dir: Path,
        write_endpoint_config: Callable[..., Path],
        echo_ask: Callable[..., Any],
    ) -> None:
        config = write_endpoint_config("local")
        output_dir = tmp_path / "output"
        argv = [
            "book-sanitizer", "-i", str(input_dir), "-o", str(output_dir),
            "--config", str(config), "--log-dir", str(tmp_path / "logs"),
        ]  # fmt: skip

        with patch("sys.argv", argv), patch(ASK, side_effect=echo_ask):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 0
        assert (output_dir / "a.txt.yaml").read_text(encoding="utf-8") == (
            "chunks:\n  - |-\n    TBE FIRST PAGE.\n"
        )

    @pytest.mark.unit
    def test_endpoint_failure_still_exits_zero(
        self, tmp_path: Path, input_dir: Path
    ) -> None:
        """Per-endpoint errors are logged, not surfaced as the exit code."""
        argv = [
            "book-sanitizer", "-i", str(input_dir), "-o", str(tmp_path / "output"),
            "--config", str(tmp_path / "missing.yaml"), "--log-dir", str(tmp_path / "logs"),
        ]  # fmt: skip

        with patch("sys.argv", argv), pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 0
        log_text = next((tmp_path / "logs").glob("*.log")).read_text(encoding="utf-8")
        assert "Config load error" in log_text
