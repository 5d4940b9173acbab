"""Tests du point d'entrée de la console."""
import pytest

from football_league import main as main_module
from football_league.db.connection import Database
from football_league.main import build_parser, main, wait_for_key


class TestParser:

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.demos == []
        assert not args.list
        assert not args.create_schema
        assert not args.no_wait

    def test_demo_names(self):
        args = build_parser().parse_args(["query_filters", "simple_delete", "--no-wait"])
        assert args.demos == ["query_filters", "simple_delete"]
        assert args.no_wait


class TestMain:

    def test_list(self, capsys, restore_logging):
        assert main(["--list"]) == 0
        output = capsys.readouterr().out
        assert "* add_new_league" in output
        assert "  delete_with_relationship" in output

    def test_unknown_demo(self, restore_logging):
        with pytest.raises(SystemExit) as exc_info:
            main(["relegation"])
        assert exc_info.value.code == 2

    def test_runs_selected_demos(self, tmp_path, monkeypatch, capsys, restore_logging):
        url = f"sqlite+aiosqlite:///{tmp_path / 'console.db'}"
        monkeypatch.setattr(main_module, "Database", lambda: Database(url))

        assert main(["--create-schema", "--no-wait", "add_new_league", "simple_select_all_query"]) == 0
        output = capsys.readouterr().out
        assert "--- simple_select_all_query ---" in output
        assert "1: Serie A" in output
        assert "Appuyez sur Entrée" not in output

    def test_waits_for_key(self, tmp_path, monkeypatch, capsys, restore_logging):
        url = f"sqlite+aiosqlite:///{tmp_path / 'console.db'}"
        monkeypatch.setattr(main_module, "Database", lambda: Database(url))
        pressed = []
        monkeypatch.setattr("builtins.input", lambda: pressed.append(True) or "")

        assert main(["--create-schema", "simple_select_all_query"]) == 0
        assert pressed == [True]
        assert "Appuyez sur Entrée pour terminer..." in capsys.readouterr().out


def test_wait_for_key_without_stdin(monkeypatch):
    def closed_stdin():
        raise EOFError

    monkeypatch.setattr("builtins.input", closed_stdin)
    wait_for_key()
