"""Tests for CLI argument handling in main.py."""
import subprocess
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from clapboard.main import main
from clapboard.repository import EntryRepository
from clapboard.resolver import PLAIN_TEXT


@pytest.fixture
def base_args(tmp_path: Path) -> list[str]:
    """Point the CLI at a temporary config file and history."""
    config_file = tmp_path / "config.toml"
    config_file.write_text('backend = "wayland"\n')
    return ["--config", str(config_file), "--cache-dir", str(tmp_path / "history")]


class TestCLIArguments:
    """Tests for command-line argument validation."""

    def test_help_exits_with_code_0(self):
        """Test that --help exits cleanly with code 0."""
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "--capture" in result.output
        assert "--store" in result.output

    def test_capture_and_store_exit_with_code_2(self, base_args):
        """Test that --capture and --store together give usage error."""
        runner = CliRunner()
        result = runner.invoke(main, ["--capture", "--store", *base_args])
        assert result.exit_code == 2
        assert "cannot be combined" in result.output

    def test_type_without_store_exits_with_code_2(self, base_args):
        runner = CliRunner()
        result = runner.invoke(main, ["--type", "image/png", *base_args])
        assert result.exit_code == 2
        assert "--store" in result.output

    def test_invalid_capture_selection_exits_with_code_2(self, base_args):
        runner = CliRunner()
        result = runner.invoke(main, ["--capture", "secondary", *base_args])
        assert result.exit_code == 2


class TestStore:
    """Tests for --store."""

    def test_store_records_stdin(self, base_args, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["--store", *base_args], input=b"hello")
        assert result.exit_code == 0
        repository = EntryRepository.at(tmp_path / "history")
        [entry] = repository.list()
        assert repository.read_all(entry.entry_id) == {PLAIN_TEXT: b"hello"}

    def test_store_with_type(self, base_args, tmp_path):
        runner = CliRunner()
        result = runner.invoke(
            main, ["--store", "--type", "image/png", *base_args], input=b"\x89PNG"
        )
        assert result.exit_code == 0
        repository = EntryRepository.at(tmp_path / "history")
        [entry] = repository.list()
        assert entry.formats == ("image/png",)


class TestCapture:
    """Tests for --capture dispatch."""

    @pytest.mark.parametrize(
        ("args", "selections"),
        [
            (["--capture"], ["primary", "clipboard"]),
            (["--capture", "clipboard"], ["clipboard"]),
            (["--capture=primary"], ["primary"]),
        ],
    )
    def test_capture_listens_on_selected_selections(self, base_args, args, selections):
        runner = CliRunner()
        with patch("clapboard.capture_mode.run_capture", new_callable=AsyncMock) as mock_run:
            result = runner.invoke(main, [*args, *base_args])
        assert result.exit_code == 0, result.output
        mock_run.assert_awaited_once()
        sources = mock_run.call_args.args[2]
        assert [s.name for s in sources] == selections


class TestRecall:
    """Tests for recall, the default mode."""

    def _chooser(self, answer: bytes) -> MagicMock:
        result = MagicMock(spec=subprocess.CompletedProcess)
        result.returncode = 0
        result.stdout = answer
        return result

    def test_recall_restores_choice(self, base_args, tmp_path):
        EntryRepository.at(tmp_path / "history").put(1, PLAIN_TEXT, b"hello")
        sink = MagicMock()
        runner = CliRunner()
        with patch("subprocess.run", return_value=self._chooser(b"hello\n")), \
                patch("clapboard.backends.make_sink", return_value=sink):
            result = runner.invoke(main, base_args)
        assert result.exit_code == 0, result.output
        [plan] = [c.args[0] for c in sink.copy.call_args_list]
        assert plan.representations == {PLAIN_TEXT: b"hello"}

    def test_recall_unknown_label_exits_with_code_1(self, base_args):
        sink = MagicMock()
        runner = CliRunner()
        with patch("subprocess.run", return_value=self._chooser(b"nothing\n")), \
                patch("clapboard.backends.make_sink", return_value=sink):
            result = runner.invoke(main, base_args)
        assert result.exit_code == 1
        assert "Error:" in result.output
        sink.copy.assert_not_called()

    def test_recall_missing_launcher_names_it(self, base_args):
        runner = CliRunner()
        with patch("subprocess.run", side_effect=FileNotFoundError), \
                patch("clapboard.backends.make_sink", return_value=MagicMock()):
            result = runner.invoke(main, base_args)
        assert result.exit_code == 1
        assert "tofi" in result.output

    def test_recall_without_display_exits_with_code_1(self, tmp_path, monkeypatch):
        monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)
        monkeypatch.delenv("DISPLAY", raising=False)
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["--config", str(tmp_path / "none.toml"), "--cache-dir", str(tmp_path / "h")],
        )
        assert result.exit_code == 1
        assert "DISPLAY" in result.output
