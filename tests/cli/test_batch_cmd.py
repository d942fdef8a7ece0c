"""Tests for the ``skillscreen batch`` CLI command."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from skillscreen.cli.main import cli
from skillscreen.core.batch import QUARANTINE_FILENAME, REPORT_FILENAME, SAFE_FILENAME


class TestBatchCommand:
    """Manifest scanning and report files."""

    def test_writes_reports(self, runner: CliRunner, manifest: Path, tmp_path: Path) -> None:
        """All three report files are written and quarantine exits 1."""
        out = tmp_path / "reports"
        result = runner.invoke(cli, ["batch", str(manifest), "--output-dir", str(out)])
        assert result.exit_code == 1
        for name in (REPORT_FILENAME, QUARANTINE_FILENAME, SAFE_FILENAME):
            assert (out / name).is_file()
        quarantine = json.loads((out / QUARANTINE_FILENAME).read_text(encoding="utf-8"))
        assert [s["skill_id"] for s in quarantine["skills"]] == ["rogue"]
        assert "Batch Summary" in result.output
        assert "rogue" in result.output

    def test_json_output(self, runner: CliRunner, manifest: Path, tmp_path: Path) -> None:
        """JSON mode prints the summary and the written paths."""
        out = tmp_path / "reports"
        result = runner.invoke(cli, [
            "batch", str(manifest), "--output-dir", str(out), "--format", "json",
        ])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["summary"]["total_scanned"] == 2
        assert data["summary"]["quarantined"] == 1
        assert data["outputs"]["safe"].endswith(SAFE_FILENAME)

    def test_all_clean_exits_zero(self, runner: CliRunner, tmp_path: Path) -> None:
        """A manifest with nothing quarantined exits 0."""
        path = tmp_path / "clean.json"
        path.write_text(json.dumps([{"id": "a", "content": "Sort the imports."}]), encoding="utf-8")
        result = runner.invoke(cli, ["batch", str(path), "--output-dir", str(tmp_path / "out")])
        assert result.exit_code == 0

    def test_malformed_manifest(self, runner: CliRunner, tmp_path: Path) -> None:
        """A manifest that is not JSON exits 2."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        result = runner.invoke(cli, ["batch", str(path), "--output-dir", str(tmp_path / "out")])
        assert result.exit_code == 2
        assert "Error" in result.output

    def test_config_applies(self, runner: CliRunner, tmp_path: Path) -> None:
        """Config options reach the shared scanner."""
        path = tmp_path / "links.json"
        path.write_text(json.dumps([
            {"id": "l", "content": "Guide: https://docs.example.net/a"},
        ]), encoding="utf-8")
        config = tmp_path / "skillscreen.yaml"
        config.write_text("risk_threshold: 1\n", encoding="utf-8")
        out = tmp_path / "out"
        result = runner.invoke(cli, ["batch", str(path), "--output-dir", str(out)])
        assert result.exit_code == 0
        result = runner.invoke(cli, [
            "batch", str(path), "--output-dir", str(out), "--config", str(config),
        ])
        assert result.exit_code == 1
