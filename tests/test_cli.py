"""
Tests for the CLI module.
"""

import json
import os

import pytest
from unittest.mock import patch
from click.testing import CliRunner

from genass.cli import main
from genass.core.error_handler import APIError
from genass.pipeline.cost_tracker import CostEntry, CostTracker

NEEDS = [
    {"type": "icon", "description": "Settings gear", "dimensions": {"width": 24, "height": 24, "aspectRatio": "1:1"}},
    {"type": "icon", "description": "Search", "dimensions": {"width": 24, "height": 24, "aspectRatio": "1:1"}},
]


class TestCLI:
    """
    Tests for the CLI module.
    """

    @pytest.fixture
    def runner(self):
        """
        Click CLI test runner.
        """
        return CliRunner()

    @pytest.fixture
    def needs_file(self, tmp_path):
        path = tmp_path / "needs.json"
        path.write_text(json.dumps(NEEDS))
        return str(path)

    def test_estimate(self, runner, needs_file):
        result = runner.invoke(main, ["estimate", needs_file])

        assert result.exit_code == 0
        assert "Assets: 2" in result.output
        assert "google/gemini-2.5-flash-image" in result.output
        assert "Estimated cost: $0.0780 (up to $0.2340 with regenerations)" in result.output

    def test_estimate_invalid_needs_file(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"type": "icon"}]))

        result = runner.invoke(main, ["estimate", str(path)])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_costs_and_reset(self, runner):
        CostTracker().track_cost(CostEntry(operation="batch_generation", cost=0.078, model="m", assets_generated=2))

        result = runner.invoke(main, ["costs"])
        assert result.exit_code == 0
        assert "Total: $0.0780 over 1 operation(s), 2 asset(s)" in result.output

        result = runner.invoke(main, ["costs", "--reset"])
        assert result.exit_code == 0
        assert "Cost ledger reset" in result.output
        assert CostTracker().get_cost_summary().total_operations == 0

    def test_health_without_api_key(self, runner, monkeypatch):
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)

        result = runner.invoke(main, ["health"])

        assert result.exit_code == 1
        assert '"healthy": false' in result.output

    def test_health_with_api_key(self, runner, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")

        result = runner.invoke(main, ["health"])

        assert result.exit_code == 0
        assert '"healthy": true' in result.output
        assert '"name": "OpenRouter"' in result.output

    def test_generate_success(self, runner, needs_file, tmp_path, fake_adapter, noise_png):
        adapter = fake_adapter([noise_png()])
        output_dir = tmp_path / "out"
        report_path = tmp_path / "report.json"

        with patch("genass.pipeline.pipeline_runner.OpenRouterImageAdapter", lambda **kwargs: adapter):
            result = runner.invoke(main, [
                "generate", needs_file, "-o", str(output_dir), "--report", str(report_path)
            ])

        assert result.exit_code == 0, result.output
        assert result.output.count("[OK]") == 2
        assert "Total: 2/2 succeeded" in result.output
        assert len(os.listdir(output_dir)) == 2
        with open(report_path) as f:
            assert json.load(f)["summary"]["successful"] == 2
        assert CostTracker().get_cost_summary().total_assets == 2

    def test_generate_failure_exits_nonzero(self, runner, needs_file, tmp_path, fake_adapter):
        adapter = fake_adapter([APIError("Server error", status_code=500)])

        with patch("genass.pipeline.pipeline_runner.OpenRouterImageAdapter", lambda **kwargs: adapter):
            result = runner.invoke(main, [
                "generate", needs_file, "-o", str(tmp_path / "out"), "--max-retries", "1"
            ])

        assert result.exit_code == 1
        assert result.output.count("[FAILED]") == 2
        assert "Total: 0/2 succeeded, 2 failed" in result.output

    def test_generate_invalid_needs_file(self, runner, tmp_path):
        path = tmp_path / "needs.yaml"
        path.write_text("- type: icon\n  description: [unclosed\n")

        result = runner.invoke(main, ["generate", str(path)])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_generate_rejects_unknown_format(self, runner, needs_file):
        result = runner.invoke(main, ["generate", needs_file, "-f", "gif"])

        assert result.exit_code == 2
