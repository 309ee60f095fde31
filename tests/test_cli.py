"""Integration tests for CLI commands."""

import json
from pathlib import Path

from typer.testing import CliRunner

from graph2md import __version__
from graph2md.cli import app


runner = CliRunner()

GRAPH = {
    "status": "completed",
    "result": {
        "graph": {
            "nodes": [
                {"id": "F1", "labels": ["File"], "properties": {"path": "src/a.ts", "name": "a.ts"}},
                {"id": "F2", "labels": ["File"], "properties": {"path": "src/b.ts", "name": "b.ts"}},
                {"id": "fn1", "labels": ["Function"], "properties": {"name": "run", "filePath": "src/a.ts"}},
            ],
            "relationships": [
                {"id": "r1", "type": "IMPORTS", "startNode": "F1", "endNode": "F2"},
                {"id": "r2", "type": "DEFINES_FUNCTION", "startNode": "F1", "endNode": "fn1"},
            ],
        }
    },
}


def _write_graph(temp_dir: Path) -> Path:
    path = temp_dir / "graph.json"
    path.write_text(json.dumps(GRAPH), encoding="utf-8")
    return path


class TestGenerateCommand:
    """Tests for 'graph2md generate'."""

    def test_generate(self, temp_dir: Path):
        """Test rendering a graph into an output directory."""
        src = _write_graph(temp_dir)
        out = temp_dir / "out"

        result = runner.invoke(app, ["generate", "--input", str(src), "--output", str(out), "--repo", "acme"])

        assert result.exit_code == 0
        assert "Generated 3 entity files" in result.stdout
        assert sorted(p.name for p in out.iterdir()) == [
            "file-src-a-ts.md",
            "file-src-b-ts.md",
            "fn-a-ts-run.md",
        ]
        assert 'repo: "acme"' in (out / "file-src-a-ts.md").read_text(encoding="utf-8")

    def test_comma_separated_inputs(self, temp_dir: Path):
        """Test that a bad path in the list is skipped, not fatal."""
        src = _write_graph(temp_dir)
        out = temp_dir / "out"

        result = runner.invoke(app, ["generate", "-i", f"{src},{temp_dir / 'missing.json'}", "-o", str(out)])

        assert result.exit_code == 0
        assert "Generated 3 entity files" in result.stdout

    def test_missing_input(self):
        """Test that --input is required."""
        result = runner.invoke(app, ["generate"])

        assert result.exit_code == 1
        assert "--input is required" in result.stdout

    def test_uncreatable_output_dir(self, temp_dir: Path):
        """Test that an output path under a regular file fails cleanly."""
        src = _write_graph(temp_dir)
        blocker = temp_dir / "blocker"
        blocker.write_text("", encoding="utf-8")

        result = runner.invoke(app, ["generate", "-i", str(src), "-o", str(blocker / "out")])

        assert result.exit_code == 1

    def test_bad_source_template(self, temp_dir: Path):
        src = _write_graph(temp_dir)
        result = runner.invoke(
            app,
            ["generate", "-i", str(src), "-o", str(temp_dir / "out"), "--source-template", "{nope}"],
        )
        assert result.exit_code == 1

    def test_output_dir_from_config(self, temp_dir: Path):
        """Test that a stored output directory is used when -o is omitted."""
        src = _write_graph(temp_dir)
        out = temp_dir / "configured"
        runner.invoke(app, ["config", "set", "--output", str(out)])

        result = runner.invoke(app, ["generate", "-i", str(src)])

        assert result.exit_code == 0
        assert (out / "fn-a-ts-run.md").exists()


class TestConfigCommands:
    """Tests for 'graph2md config ...'."""

    def test_set_and_show(self):
        result = runner.invoke(app, ["config", "set", "--repo", "acme-api"])
        assert result.exit_code == 0
        assert "Saved settings" in result.stdout

        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "acme-api" in result.stdout

    def test_show_reports_environment_source(self, monkeypatch):
        """Test that a value taken from GRAPH2MD_* is reported as coming from env."""
        runner.invoke(app, ["config", "set", "--repo", "stored-name"])
        monkeypatch.setenv("GRAPH2MD_REPO_NAME", "shell-name")

        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        row = next(line for line in result.stdout.splitlines() if "repo_name" in line)
        assert "shell-name" in row
        assert "env" in row.split("shell-name", 1)[1]
        url_row = next(line for line in result.stdout.splitlines() if "repo_url" in line)
        assert "default" in url_row

    def test_set_nothing(self):
        result = runner.invoke(app, ["config", "set"])
        assert result.exit_code == 1
        assert "Nothing to set" in result.stdout

    def test_reset(self):
        runner.invoke(app, ["config", "set", "--repo", "acme-api"])

        result = runner.invoke(app, ["config", "reset"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["config", "show"])
        assert "acme-api" not in result.stdout


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout
