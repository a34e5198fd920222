"""
Tests for the pipeline runner.
"""

import json

import pytest
from unittest.mock import patch

from genass.core.error_handler import ValidationError
from genass.generation.settings import GeneratorSettings
from genass.pipeline.cost_tracker import CostTracker
from genass.pipeline.pipeline_runner import PipelineRunner, default_options


class TestPipelineRunner:
    """
    Tests for the PipelineRunner class.
    """

    @pytest.fixture
    def runner_factory(self, tmp_path, fake_adapter, recording_sleep, noise_png):
        def _factory(responses=None, **settings):
            self.adapter = fake_adapter(responses or [noise_png()])
            self.tracker = CostTracker(costs_file=str(tmp_path / "ledger.json"), monthly_budget=10.0)
            return PipelineRunner(
                settings=GeneratorSettings(**settings),
                adapter=self.adapter,
                cost_tracker=self.tracker,
                sleep=recording_sleep,
            )
        return _factory

    @pytest.mark.asyncio
    async def test_run_returns_report_and_tracks_cost(self, runner_factory, make_need, options):
        runner = runner_factory()
        needs = [make_need(description=f"gear {i}") for i in range(3)]

        report = await runner.run(needs, options)

        assert report.summary.total == 3
        assert report.summary.successful == 3
        assert report.summary.total_cost == pytest.approx(3 * 0.039)
        ledger = self.tracker.get_cost_summary()
        assert ledger.total_operations == 1
        assert ledger.total_cost == pytest.approx(3 * 0.039)
        assert ledger.total_assets == 3

    @pytest.mark.asyncio
    async def test_run_warns_when_over_budget(self, runner_factory, make_need, options):
        runner = runner_factory(cost_per_generation=20.0)

        with patch("genass.pipeline.pipeline_runner.logger") as mock_logger:
            await runner.run([make_need()], options)

        warnings = " ".join(str(call.args[0]) for call in mock_logger.warning.call_args_list)
        assert "Monthly budget exceeded" in warnings

    @pytest.mark.asyncio
    async def test_character_consistency_mode(
        self, runner_factory, make_need, options, noise_png, tmp_path, recording_sleep
    ):
        reference = tmp_path / "mascot.png"
        reference.write_bytes(noise_png(seed=3))
        runner = runner_factory()
        needs = [make_need(description=f"pose {i}", suggested_prompt=f"Fox waving {i}") for i in range(3)]

        report = await runner.generate_with_character_consistency(needs, str(reference), options)

        assert report.summary.successful == 3
        # Inputs are left untouched
        assert needs[0].suggested_prompt == "Fox waving 0"
        assert report.results[0].prompt.startswith(
            "Using the character/style from the reference image, Fox waving 0."
        )
        prompt, references = self.adapter.calls[0]
        assert "CHARACTER CONSISTENCY" in prompt
        assert len(references) == 1
        # Concurrency 2: groups of (2, 1) with a single pause between them
        assert recording_sleep.delays == [6.0]

    @pytest.mark.asyncio
    async def test_image_blending_mode(self, runner_factory, make_need, options, noise_png, tmp_path):
        sources = []
        for i in range(2):
            path = tmp_path / f"source{i}.png"
            path.write_bytes(noise_png(seed=i))
            sources.append(str(path))
        runner = runner_factory()

        result = await runner.generate_with_image_blending(
            make_need(type="banner", suggested_prompt="Summer sale"), sources, options
        )

        assert result.success
        assert result.prompt.startswith("Create a banner by blending elements from multiple source images. Summer sale.")
        prompt, references = self.adapter.calls[0]
        assert len(references) == 2
        assert "from the 2 reference image(s)" in prompt

    @pytest.mark.asyncio
    async def test_image_blending_requires_images(self, runner_factory, make_need, options):
        with pytest.raises(ValidationError):
            await runner_factory().generate_with_image_blending(make_need(), [], options)

    def test_estimate_cost(self, runner_factory):
        assert runner_factory().estimate_cost(10) == pytest.approx(0.39)
        assert runner_factory(cost_per_generation=0.05).estimate_cost(3) == pytest.approx(0.15)

    def test_health_check_healthy(self, runner_factory):
        status = runner_factory().health_check()

        assert status["healthy"]
        assert status["service"]["name"] == "Fake"
        assert status["within_budget"]

    def test_health_check_without_api_key(self, tmp_path, monkeypatch):
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
        runner = PipelineRunner(
            settings=GeneratorSettings(),
            cost_tracker=CostTracker(costs_file=str(tmp_path / "ledger.json")),
        )

        status = runner.health_check()

        assert status["healthy"] is False
        assert "OPENROUTER_API_KEY" in status["error"]

    def test_generation_stats(self, runner_factory):
        stats = runner_factory(max_regeneration_attempts=1).get_generation_stats()

        assert stats["model"] == "google/gemini-2.5-flash-image"
        assert stats["max_regeneration_attempts"] == 1
        assert "Multi-image blending" in stats["features"]

    @pytest.mark.asyncio
    async def test_save_report(self, runner_factory, make_need, options, tmp_path):
        runner = runner_factory()
        report = await runner.run([make_need()], options)
        report_path = tmp_path / "reports" / "run.json"

        runner.save_report(report, str(report_path))

        with open(report_path) as f:
            saved = json.load(f)
        assert saved["summary"]["total"] == 1
        assert saved["results"][0]["asset_need"]["dimensions"] == {"width": 24, "height": 24, "aspectRatio": "1:1"}
        assert saved["results"][0]["metadata"]["regeneration_attempts"] == 0

    def test_quality_threshold_comes_from_settings(self, runner_factory):
        runner = runner_factory(quality_threshold=0.9)

        assert runner.quality_policy.threshold == 0.9


def test_default_options_use_config(tmp_path):
    options = default_options(format="webp")

    assert options.output_dir == "generated-assets"
    assert options.format == "webp"
    assert options.effective_quality == 85
