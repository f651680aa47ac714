"""Tests for the command-line interface."""

import json
import shutil
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from cavvy_analyzer.cli import cli
from cavvy_analyzer.errors import CompilerError

FIXTURES = Path(__file__).parent / "fixtures" / "cavvy"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def project(tmp_path):
    """A small project with a clean file, a broken file and a build dir."""
    shutil.copy(FIXTURES / "calculator.cay", tmp_path / "calculator.cay")
    shutil.copy(FIXTURES / "problems.cay", tmp_path / "problems.cay")
    build = tmp_path / "build"
    build.mkdir()
    (build / "generated.cay").write_text("}\n")
    return tmp_path


class TestCheck:
    """The ``check`` command."""

    def test_clean_file(self, runner, project):
        result = runner.invoke(cli, ["check", str(project / "calculator.cay")])
        assert result.exit_code == 0
        assert "No problems found in 1 file" in result.output

    def test_errors_fail(self, runner, project):
        result = runner.invoke(cli, ["check", str(project / "problems.cay")])
        assert result.exit_code == 1
        assert "problems.cay:11:1: error:" in result.output
        assert "[return-outside-method]" in result.output
        assert "Found 7 problems" in result.output

    def test_fail_on_never(self, runner, project):
        result = runner.invoke(cli, ["check", "--fail-on", "never", str(project / "problems.cay")])
        assert result.exit_code == 0

    def test_fail_on_information(self, runner, tmp_path):
        source = tmp_path / "lower.cay"
        source.write_text("class lower {\n}\n")
        assert runner.invoke(cli, ["check", str(source)]).exit_code == 0
        result = runner.invoke(cli, ["check", "--fail-on", "information", str(source)])
        assert result.exit_code == 1

    def test_disable(self, runner, tmp_path):
        source = tmp_path / "lower.cay"
        source.write_text("class lower {\n}\n")
        result = runner.invoke(cli, ["check", "--disable", "naming", "--fail-on", "information", str(source)])
        assert result.exit_code == 0

    def test_directory_skips_excluded(self, runner, project):
        result = runner.invoke(cli, ["check", "--format", "json", str(project)])
        data = json.loads(result.output)
        paths = sorted(Path(f["path"]).name for f in data["files"])
        assert paths == ["calculator.cay", "problems.cay"]
        assert data["summary"]["files_analyzed"] == 2
        assert data["summary"]["total"] == 7
        assert data["summary"]["error"] == 1

    def test_yaml_format(self, runner, project):
        result = runner.invoke(cli, ["check", "--format", "yaml", str(project / "problems.cay")])
        data = yaml.safe_load(result.output)
        codes = [d["code"] for d in data["files"][0]["diagnostics"]]
        assert codes[0] == "class-name-convention"

    def test_config_file_disables_rules(self, runner, project):
        (project / ".cavvy-analyzer.yml").write_text("diagnostics:\n  disabled_rules: [return-outside-method]\n")
        result = runner.invoke(cli, ["check", str(project / "problems.cay")])
        assert result.exit_code == 0

    def test_invalid_config_exits_2(self, runner, project):
        (project / ".cavvy-analyzer.yml").write_text("output:\n  format: xml\n")
        result = runner.invoke(cli, ["check", str(project / "calculator.cay")])
        assert result.exit_code == 2

    def test_compiler_diagnostics_are_merged(self, runner, project):
        target = project / "calculator.cay"
        from cavvy_analyzer.compiler import parse_compiler_output
        extra = parse_compiler_output("calculator.cay:2:5: error: type mismatch", target)
        with patch("cavvy_analyzer.cli.run_compiler_check", return_value=extra) as check:
            result = runner.invoke(cli, ["check", "--compiler", "cavvyc", str(target)])
        check.assert_called_once()
        assert result.exit_code == 1
        assert "type mismatch" in result.output

    def test_missing_compiler_is_not_fatal(self, runner, project):
        error = CompilerError("Compiler not found: cavvyc", compiler_path="cavvyc")
        with patch("cavvy_analyzer.cli.run_compiler_check", side_effect=error):
            result = runner.invoke(cli, ["check", "--compiler", "cavvyc", str(project / "calculator.cay")])
        assert result.exit_code == 0

    def test_missing_path(self, runner, tmp_path):
        result = runner.invoke(cli, ["check", str(tmp_path / "absent.cay")])
        assert result.exit_code == 2


class TestSymbolCommands:
    """``symbols``, ``outline``, ``definition`` and ``references``."""

    def test_symbols_json(self, runner, project):
        result = runner.invoke(cli, ["symbols", "--format", "json", str(project / "calculator.cay")])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["symbols"][0]["name"] == "Calculator"
        assert len(data["symbols"]) == 11

    def test_symbols_kind_filter(self, runner, project):
        result = runner.invoke(
            cli, ["symbols", "--kind", "method", "--format", "yaml", str(project / "calculator.cay")]
        )
        data = yaml.safe_load(result.output)
        assert [s["name"] for s in data["symbols"]] == ["Calculator", "add", "main"]

    def test_symbols_table(self, runner, project):
        result = runner.invoke(cli, ["symbols", str(project / "calculator.cay")])
        assert result.exit_code == 0
        assert "total" in result.output

    def test_outline(self, runner, project):
        result = runner.invoke(cli, ["outline", str(project / "calculator.cay")])
        assert result.exit_code == 0
        assert "add" in result.output
        assert "sum" in result.output

    def test_definition(self, runner, project):
        # line 9 is "        return sum;"
        result = runner.invoke(cli, ["definition", str(project / "calculator.cay"), "9", "16"])
        assert result.exit_code == 0
        assert "calculator.cay:9:13: variable sum" in result.output

    def test_references(self, runner, project):
        result = runner.invoke(cli, ["references", str(project / "calculator.cay"), "1", "17"])
        assert result.exit_code == 0
        lines = [line for line in result.output.splitlines() if "total" in line]
        assert len(lines) == 2
        assert "field total" in lines[0]

    def test_position_out_of_range(self, runner, project):
        result = runner.invoke(cli, ["definition", str(project / "calculator.cay"), "500", "0"])
        assert result.exit_code == 2

    def test_columns_count_utf16_units(self, runner, tmp_path):
        """Columns after an astral character are UTF-16 offsets, as the library reports them."""
        source = tmp_path / "emoji.cay"
        source.write_text(
            "class Emoji {\n"
            "    void run() {\n"
            "        int x = 1;\n"
            "        int y = 2;\n"
            "        String s = \"\U0001F600\U0001F600\"; x = y;\n"
            "    }\n"
            "}\n",
            encoding="utf-8",
        )
        result = runner.invoke(cli, ["definition", str(source), "4", "27"])
        assert result.exit_code == 0
        assert "emoji.cay:3:13: variable x" in result.output


class TestConfigCommands:
    """``config init`` and ``config show``."""

    def test_init_and_show(self, runner, tmp_path):
        path = tmp_path / ".cavvy-analyzer.yml"
        result = runner.invoke(cli, ["config", "init", "--path", str(path)])
        assert result.exit_code == 0
        assert yaml.safe_load(path.read_text())["diagnostics"]["delay_ms"] == 500

        result = runner.invoke(cli, ["config", "show", "--path", str(path)])
        assert result.exit_code == 0
        assert "delay_ms: 500" in result.output

    def test_init_refuses_to_overwrite(self, runner, tmp_path):
        path = tmp_path / ".cavvy-analyzer.yml"
        path.write_text("keep: me\n")
        result = runner.invoke(cli, ["config", "init", "--path", str(path)], input="n\n")
        assert "Aborted" in result.output
        assert path.read_text() == "keep: me\n"


class TestVersion:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "cavvy-analyzer" in result.output


class TestRules:
    def test_lists_every_rule(self, runner):
        result = runner.invoke(cli, ["rules"])
        assert result.exit_code == 0
        assert result.output.splitlines()[0].startswith("brackets")
        assert "missing-semicolon" in result.output
        assert "naming" in result.output
