"""Tests for the foodmap ingest CLI command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from foodmap.cli.main import app

runner = CliRunner()

_TEXT_SOURCE = """\
Pizza Union
https://maps.app.goo.gl/E6s3Tma5Y9ii5Wpu5
51.5145,-0.0742

Bari Bari (Korean)
https://maps.app.goo.gl/g9dsuQ2AnZguY1jF7

Dishoom
https://maps.app.goo.gl/dishoom
51.5242, -0.0769
"""

_YAML_SOURCE = """\
restaurants:
  - name: Pizza Union
    url: https://maps.app.goo.gl/E6s3Tma5Y9ii5Wpu5
    coordinates: "51.5145,-0.0742"
    tags: pizza cheap
  - name: No Link
  - name: Bari Bari
    url: https://maps.app.goo.gl/g9dsuQ2AnZguY1jF7
    comment: Great bibimbap
"""


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------


@pytest.fixture(autouse=True)
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every command from an empty project directory."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FOODMAP_OUTPUT", raising=False)
    monkeypatch.delenv("FOODMAP_ORIGIN", raising=False)
    return tmp_path


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _artifact(path: Path) -> list[dict]:
    return json.loads(path.read_text(encoding="utf-8"))


# ------------------------------------------------------------------
# Input validation
# ------------------------------------------------------------------


def test_ingest_exits_without_source(project):
    result = runner.invoke(app, ["ingest"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_ingest_unknown_extension(project):
    _write(project / "list.csv", "a,b\n")
    result = runner.invoke(app, ["ingest", "-s", "list.csv"])
    assert result.exit_code == 1
    assert "--format" in result.output


def test_ingest_unknown_format_flag(project):
    _write(project / "list.txt", _TEXT_SOURCE)
    result = runner.invoke(app, ["ingest", "-s", "list.txt", "--format", "csv"])
    assert result.exit_code == 1
    assert "Unknown format" in result.output


def test_ingest_invalid_config(project):
    _write(project / "foodmap.yaml", "ingest:\n  format: xml\n")
    result = runner.invoke(app, ["ingest"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


# ------------------------------------------------------------------
# Line text
# ------------------------------------------------------------------


def test_ingest_text_writes_artifact(project):
    _write(project / "list.txt", _TEXT_SOURCE)

    result = runner.invoke(app, ["ingest", "-s", "list.txt", "-o", "out/restaurants.json"])

    assert result.exit_code == 0, result.output
    assert "Parsed 3 restaurants" in result.output
    assert "Found coordinates for 2 restaurants" in result.output
    data = _artifact(project / "out" / "restaurants.json")
    assert [d["name"] for d in data] == ["Pizza Union", "Bari Bari (Korean)", "Dishoom"]
    assert data[0]["coordinates"] == {"lat": 51.5145, "lng": -0.0742}
    assert data[1]["coordinates"] is None


def test_ingest_replaces_previous_artifact(project):
    _write(project / "list.txt", _TEXT_SOURCE)
    out = _write(project / "restaurants.json", '[{"name": "Old", "url": "https://x"}]')

    result = runner.invoke(app, ["ingest", "-s", "list.txt", "-o", str(out)])

    assert result.exit_code == 0, result.output
    assert "Old" not in out.read_text(encoding="utf-8")


def test_ingest_dry_run_writes_nothing(project):
    _write(project / "list.txt", _TEXT_SOURCE)

    result = runner.invoke(app, ["ingest", "-s", "list.txt", "-o", "restaurants.json", "--dry-run"])

    assert result.exit_code == 0
    assert "Dry run" in result.output
    assert not (project / "restaurants.json").exists()


def test_ingest_overlong_block_warns(project):
    _write(project / "list.txt", "A\nhttps://a\n1.0,2.0\nB\nhttps://b\n")

    result = runner.invoke(app, ["ingest", "-s", "list.txt", "-o", "r.json"])

    assert result.exit_code == 0
    assert "missing blank line" in result.output


def test_ingest_overlong_block_fails_in_strict_mode(project):
    _write(project / "list.txt", "A\nhttps://a\n1.0,2.0\nB\nhttps://b\n")

    result = runner.invoke(app, ["ingest", "-s", "list.txt", "-o", "r.json", "--strict"])

    assert result.exit_code == 1
    assert "block has 5 lines" in result.output
    assert not (project / "r.json").exists()


# ------------------------------------------------------------------
# YAML
# ------------------------------------------------------------------


def test_ingest_yaml_reports_skipped(project):
    _write(project / "data" / "restaurants.yaml", _YAML_SOURCE)

    result = runner.invoke(app, ["ingest"])

    assert result.exit_code == 0, result.output
    assert "Parsed 2 restaurants" in result.output
    assert "Skipped 1 entries" in result.output
    assert "missing url" in result.output
    data = _artifact(project / "src" / "lib" / "restaurants.json")
    assert data[0]["tags"] == ["pizza", "cheap"]
    assert data[1]["comment"] == "Great bibimbap"


def test_ingest_yaml_strict_fails_on_skip(project):
    _write(project / "restaurants.yaml", _YAML_SOURCE)

    result = runner.invoke(app, ["ingest", "-s", "restaurants.yaml", "-o", "r.json", "--strict"])

    assert result.exit_code == 1
    assert "missing url" in result.output
    assert "Parsed" not in result.output
    assert not (project / "r.json").exists()


def test_ingest_invalid_yaml(project):
    _write(project / "restaurants.yaml", "restaurants: [unclosed\n")
    result = runner.invoke(app, ["ingest", "-s", "restaurants.yaml"])
    assert result.exit_code == 1
    assert "Could not parse" in result.output


def test_ingest_format_override(project):
    _write(project / "list.md", _YAML_SOURCE)

    result = runner.invoke(app, ["ingest", "-s", "list.md", "-o", "r.json", "-f", "yaml"])

    assert result.exit_code == 0, result.output
    assert len(_artifact(project / "r.json")) == 2


def test_ingest_uses_config_paths(project):
    _write(project / "foodmap.yaml", "ingest:\n  source: list.txt\n  output: public/data.json\n")
    _write(project / "list.txt", _TEXT_SOURCE)

    result = runner.invoke(app, ["ingest"])

    assert result.exit_code == 0, result.output
    assert (project / "public" / "data.json").exists()


def test_ingest_env_output_override(project, monkeypatch):
    _write(project / "list.txt", _TEXT_SOURCE)
    monkeypatch.setenv("FOODMAP_OUTPUT", "env.json")

    result = runner.invoke(app, ["ingest", "-s", "list.txt"])

    assert result.exit_code == 0, result.output
    assert (project / "env.json").exists()
