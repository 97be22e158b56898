"""Tests for kitchen_stock.cli module."""

from __future__ import annotations

import os
from datetime import date
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest

from kitchen_stock.cli import (
    DIVIDER,
    GOODBYE_MESSAGE,
    _build_parser,
    _frame,
    _welcome,
    main,
    run_session,
)
from kitchen_stock.inventory import InventorySession, InventoryState
from kitchen_stock.storage import IngredientStorage, StorageError

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def data_file(tmp_path: Path) -> Path:
    """Return a temporary inventory file path."""
    return tmp_path / "data" / "ingredients.txt"


@pytest.fixture()
def session(data_file: Path) -> InventorySession:
    """Return a session over an empty temporary inventory."""
    storage = IngredientStorage(data_file)
    return InventorySession(InventoryState(session_date=date(2022, 3, 1)), storage)


def _reader(lines: list[str]) -> Callable[[], str]:
    """Return a read_line callable that raises EOFError when exhausted."""
    feed = iter(lines)

    def read_line() -> str:
        try:
            return next(feed)
        except StopIteration:
            raise EOFError from None

    return read_line


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormatting:
    """Tests for banner and frame helpers."""

    def test_frame(self) -> None:
        """Test output is wrapped between dividers."""
        assert _frame("hi") == f"{DIVIDER}\nhi\n{DIVIDER}"

    def test_welcome_shows_date(self) -> None:
        """Test the welcome banner shows the session date."""
        text = _welcome(date(2022, 3, 1))
        assert "Current session date: 01/03/2022" in text
        assert 'use "help"' in text


# ---------------------------------------------------------------------------
# run_session
# ---------------------------------------------------------------------------


class TestRunSession:
    """Tests for run_session."""

    def test_stops_at_exit(self, session: InventorySession) -> None:
        """Test lines after exit are not read."""
        out: list[str] = []
        count = run_session(session, _reader(["list", "exit", "help"]), out.append)
        assert count == 1
        assert len(out) == 1
        assert "There is nothing in the inventory!" in out[0]

    def test_stops_at_eof(self, session: InventorySession) -> None:
        """Test end of input ends the session."""
        out: list[str] = []
        assert run_session(session, _reader(["help"]), out.append) == 1

    def test_errors_do_not_stop_session(self, session: InventorySession) -> None:
        """Test a rejected command is shown and the loop continues."""
        out: list[str] = []
        run_session(
            session,
            _reader(["alerts foo", "add n/egg a/2 e/01/04/2022", "EXIT"]),
            out.append,
        )
        assert "Not an alert type!" in out[0]
        assert "has been added" in out[1]
        assert len(session.state.ingredients) == 1

    def test_blank_lines_ignored(self, session: InventorySession) -> None:
        """Test empty lines produce no output."""
        out: list[str] = []
        assert run_session(session, _reader(["", "   "]), out.append) == 0
        assert out == []

    def test_exit_with_arguments_does_not_exit(
        self, session: InventorySession
    ) -> None:
        """Test exit followed by text is rejected and the session continues."""
        out: list[str] = []
        count = run_session(session, _reader(["exit now", "list"]), out.append)
        assert count == 2
        assert "Invalid command!" in out[0]
        assert "There is nothing in the inventory!" in out[1]


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


class TestBuildParser:
    """Tests for _build_parser."""

    def test_defaults(self) -> None:
        """Test options default to None/False."""
        args = _build_parser().parse_args([])
        assert args.data_file is None
        assert args.env_file is None
        assert args.verbose is False

    def test_options(self) -> None:
        """Test all options are parsed."""
        args = _build_parser().parse_args(
            ["--data-file", "x.txt", "--env-file", ".env.test", "--verbose"]
        )
        assert args.data_file == "x.txt"
        assert args.env_file == ".env.test"
        assert args.verbose is True


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------


@patch("kitchen_stock.config.load_dotenv")
class TestMain:
    """Tests for the main entry point."""

    @patch.dict(os.environ, {}, clear=True)
    def test_full_session(
        self,
        _mock_dotenv: MagicMock,
        data_file: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test a session loads, runs commands and saves on exit."""
        data_file.parent.mkdir(parents=True)
        data_file.write_text("flour|2.0|01/01/2030\n")
        lines = ["add n/egg a/6 e/01/04/2030", "subtract n/flour a/0.5", "exit"]
        with (
            patch("builtins.input", side_effect=lines),
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["--data-file", str(data_file)])

        assert exc_info.value.code == 0
        captured = capsys.readouterr().out
        assert "Welcome to Kitchen Stock!" in captured
        assert GOODBYE_MESSAGE in captured
        assert data_file.read_text() == (
            "flour|1.5|kg|01/01/2030\negg|6.0|kg|01/04/2030\n"
        )

    @patch.dict(os.environ, {"EXPIRY_THRESHOLD_DAYS": "x"}, clear=True)
    def test_bad_config_exits(
        self, _mock_dotenv: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test invalid configuration is reported with exit code 1."""
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
        assert "EXPIRY_THRESHOLD_DAYS" in capsys.readouterr().err

    @patch.dict(os.environ, {"LOG_LEVEL": "verbose"}, clear=True)
    def test_bad_log_level_exits(
        self, _mock_dotenv: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test an unknown log level is reported before logging is set up."""
        with (
            patch("kitchen_stock.cli.logging.basicConfig") as mock_basic,
            pytest.raises(SystemExit) as exc_info,
        ):
            main([])
        assert exc_info.value.code == 1
        assert "LOG_LEVEL" in capsys.readouterr().err
        mock_basic.assert_not_called()

    @patch.dict(os.environ, {}, clear=True)
    def test_save_failure_on_exit(
        self,
        _mock_dotenv: MagicMock,
        data_file: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test a failed final save exits with code 1."""
        with (
            patch("builtins.input", side_effect=["exit"]),
            patch.object(
                IngredientStorage, "save", side_effect=StorageError("no space")
            ),
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["--data-file", str(data_file)])
        assert exc_info.value.code == 1
        assert "no space" in capsys.readouterr().err
