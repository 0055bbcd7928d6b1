"""
Tests for the tue entry point: command routing, graph file selection,
configuration and error reporting.
"""

from pathlib import Path

import pytest

from tuesday.cli.main import VALID_COMMANDS, build_parser, main, suggest_command
from tuesday.graph.config import DEFAULT_CONFIG_YAML
from tuesday.graph.persistence import GRAPH_FILENAME, GraphFile


def global_file(env: Path) -> Path:
    return env / "home" / GRAPH_FILENAME


class TestRouting:

    def test_no_command_prints_help(self, tue_env, capsys):
        assert main([]) == 1
        assert "usage: tue" in capsys.readouterr().out

    def test_unknown_command_suggests(self, tue_env, capsys):
        assert main(["chek", "1"]) == 2
        err = capsys.readouterr().err
        assert "'chek' is not a valid command" in err
        assert "- check" in err

    def test_suggest_command(self):
        assert "ls" in suggest_command("lss")
        assert suggest_command("zzzzzz") == []

    def test_every_command_has_a_parser(self):
        parser = build_parser()
        subparsers = next(
            action for action in parser._actions
            if action.dest == "command"
        )
        assert sorted(subparsers.choices) == VALID_COMMANDS

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            main(["--version"])
        assert "tue" in capsys.readouterr().out

    def test_new_cfg_needs_no_graph(self, tue_env, capsys):
        assert main(["new-cfg"]) == 0
        assert capsys.readouterr().out == DEFAULT_CONFIG_YAML
        assert not global_file(tue_env).exists()


class TestPersistence:

    def test_mutation_is_saved(self, tue_env, capsys):
        assert main(["add", "college", "-r"]) == 0
        assert main(["add", "thesis", "0"]) == 0
        graph = GraphFile(global_file(tue_env)).load()
        assert graph.get(0).children == [1]

    def test_read_only_command_does_not_write(self, tue_env):
        assert main(["ls"]) == 0
        assert not global_file(tue_env).exists()

    def test_error_reported_and_nothing_saved(self, tue_env, capsys):
        assert main(["rm", "5"]) == 1
        assert "Error: No such node: 5" in capsys.readouterr().err
        assert not global_file(tue_env).exists()

    def test_local_file_preferred(self, tue_env):
        local = tue_env / "work" / GRAPH_FILENAME
        GraphFile(local).save(GraphFile(local).load())
        assert main(["add", "here", "-r"]) == 0
        assert len(GraphFile(local).load()) == 1
        assert main(["-g", "add", "there", "-r"]) == 0
        assert len(GraphFile(global_file(tue_env)).load()) == 1

    def test_explicit_local_path(self, tue_env):
        path = tue_env / "elsewhere" / "plan.json"
        assert main(["-l", str(path), "add", "x", "-r"]) == 0
        assert len(GraphFile(path).load()) == 1

    def test_out_of_range_date_is_reported(self, tue_env, capsys):
        main(["add", "college", "-r"])
        capsys.readouterr()
        assert main(["ls", "100000 years"]) == 1
        assert main(["ls", "-D", "in 99999999 days"]) == 1
        err = capsys.readouterr().err
        assert err.count("Error: ") == 2

    def test_corrupt_file_is_not_overwritten(self, tue_env, capsys):
        path = global_file(tue_env)
        path.write_text("{broken", encoding="utf-8")
        assert main(["add", "x", "-r"]) == 1
        assert "not valid JSON" in capsys.readouterr().err
        assert path.read_text(encoding="utf-8") == "{broken"


class TestConfiguration:

    def test_config_from_environment(self, tue_env, monkeypatch, capsys):
        config = tue_env / "conf.yaml"
        config.write_text("display:\n  show_connections: false\n", encoding="utf-8")
        monkeypatch.setenv("TUESDAY_CONFIG", str(config))
        assert main(["add", "college", "-r"]) == 0
        assert capsys.readouterr().out == ""

    def test_config_flag(self, tue_env, capsys):
        config = tue_env / "conf.yaml"
        config.write_text("display:\n  icons:\n    node_none: '( )'\n", encoding="utf-8")
        main(["add", "college", "-r"])
        capsys.readouterr()
        main(["-c", str(config), "ls"])
        assert capsys.readouterr().out == " +-- ( ) college (0)\n"

    def test_invalid_config(self, tue_env, capsys):
        config = tue_env / "conf.yaml"
        config.write_text("graph:\n  auto_compact: maybe\n", encoding="utf-8")
        assert main(["-c", str(config), "ls"]) == 1
        assert "graph.auto_compact" in capsys.readouterr().err

    def test_auto_compact(self, tue_env):
        config = tue_env / "conf.yaml"
        config.write_text(
            "graph:\n  auto_compact: true\n  auto_compact_threshold: 0\n",
            encoding="utf-8"
        )
        main(["add", "a", "-r"])
        main(["add", "b", "-r"])
        assert main(["-c", str(config), "rm", "0"]) == 0
        graph = GraphFile(global_file(tue_env)).load()
        assert graph.table_size == 1
        assert graph.get(0).message == "b"

    def test_no_auto_compact_below_threshold(self, tue_env):
        main(["add", "a", "-r"])
        main(["add", "b", "-r"])
        assert main(["rm", "0"]) == 0
        graph = GraphFile(global_file(tue_env)).load()
        assert graph.table_size == 2
        assert graph.nodes[0] is None
