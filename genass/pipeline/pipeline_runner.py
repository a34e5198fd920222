"""
Pipeline runner module.

This module wires the generation components together from configuration and
provides the entry points used by the CLI: batch generation with cost
tracking, character-consistency and image-blending modes, cost estimates,
a health check and JSON run reports.
"""

import json
import os
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence

from genass.core.config import get_config_value
from genass.core.constants import DEFAULT_FORMAT, DEFAULT_OUTPUT_DIR
from genass.core.error_handler import ConfigurationError, ValidationError
from genass.core.logging_config import get_logger, log_execution_context
from genass.core.utils import ensure_dir
from genass.generation.adapters.base import ImageGenerationAdapter
from genass.generation.adapters.openrouter_adapter import OpenRouterImageAdapter
from genass.generation.batch_scheduler import BatchScheduler, BatchSummary, summarize
from genass.generation.cancellation import CancellationToken, SleepFunc, cancellable_sleep
from genass.generation.generation_client import GenerationClient
from genass.generation.image_processor import ImagePostProcessor
from genass.generation.models import AssetNeed, GeneratedAsset, GenerationOptions
from genass.generation.orchestrator import AssetGenerationOrchestrator
from genass.generation.prompt_composer import PromptComposer
from genass.generation.quality_validator import QualityPolicy, QualityValidator
from genass.generation.settings import GeneratorSettings
from genass.pipeline.cost_tracker import CostEntry, CostTracker

# Initialize logger
logger = get_logger(__name__)

CHARACTER_CONSISTENCY_CONCURRENCY = 2

FEATURES = [
    "Structured prompt composition per asset type",
    "Retries with exponential backoff and rate-limit detection",
    "Automatic resize and transparent padding",
    "Heuristic quality validation with bounded regeneration",
    "Concurrency-limited batch generation",
    "Character consistency across assets",
    "Multi-image blending",
    "Persistent cost tracking with a monthly budget",
]


@dataclass(frozen=True)
class BatchReport:
    results: List[GeneratedAsset]
    summary: BatchSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "results": [result.to_dict() for result in self.results],
        }


def default_options(**overrides) -> GenerationOptions:
    """
    Build GenerationOptions from the configured output defaults.
    """
    values = {
        "output_dir": get_config_value("output.directory", DEFAULT_OUTPUT_DIR),
        "format": get_config_value("output.format", DEFAULT_FORMAT),
    }
    values.update({key: value for key, value in overrides.items() if value is not None})
    return GenerationOptions(**values)


def _base_prompt(need: AssetNeed) -> str:
    return (need.suggested_prompt or need.description).strip().rstrip(".")


class PipelineRunner:
    """
    Class for running the asset generation pipeline.
    """

    def __init__(
        self,
        settings: Optional[GeneratorSettings] = None,
        adapter: Optional[ImageGenerationAdapter] = None,
        cost_tracker: Optional[CostTracker] = None,
        quality_policy: Optional[QualityPolicy] = None,
        sleep: SleepFunc = cancellable_sleep
    ):
        """
        Initialize the PipelineRunner.

        Args:
            settings: Generator settings. Read from configuration if not provided.
            adapter: Image generation adapter. An OpenRouter adapter is created
                     on first use if not provided.
            cost_tracker: Cost ledger.
            quality_policy: Penalty table for the quality validator.
            sleep: Cancellable sleep used for every deliberate delay.
        """
        self.settings = settings or GeneratorSettings.from_config()
        self._adapter = adapter
        self.cost_tracker = cost_tracker or CostTracker()
        policy = quality_policy or QualityPolicy.from_config()
        self.quality_policy = replace(policy, threshold=self.settings.quality_threshold)
        self.sleep = sleep
        self._scheduler: Optional[BatchScheduler] = None

    @property
    def adapter(self) -> ImageGenerationAdapter:
        if self._adapter is None:
            self._adapter = OpenRouterImageAdapter(model=self.settings.model)
        return self._adapter

    @property
    def scheduler(self) -> BatchScheduler:
        if self._scheduler is None:
            client = GenerationClient(self.adapter, quality_mode=self.settings.quality_mode, sleep=self.sleep)
            orchestrator = AssetGenerationOrchestrator(
                composer=PromptComposer(self.settings.negative_prompt),
                client=client,
                processor=ImagePostProcessor(),
                validator=QualityValidator(self.quality_policy),
                settings=self.settings,
                sleep=self.sleep,
            )
            self._scheduler = BatchScheduler(orchestrator, batch_delay=self.settings.batch_delay, sleep=self.sleep)
        return self._scheduler

    async def run(
        self,
        needs: Sequence[AssetNeed],
        options: GenerationOptions,
        concurrency: Optional[int] = None,
        token: Optional[CancellationToken] = None
    ) -> BatchReport:
        """
        Generate a batch of assets and record its cost.

        Args:
            needs: Asset needs, in the order results are wanted.
            options: Options shared by every asset.
            concurrency: Group size. Defaults to the configured concurrency.
            token: Cancellation token.

        Returns:
            BatchReport with one result per need and the batch summary.

        Raises:
            ValidationError: If the request is invalid.
        """
        concurrency = concurrency or self.settings.concurrency
        log_execution_context(logger, {
            "assets": len(needs),
            "concurrency": concurrency,
            "model": self.settings.model,
            "output_dir": options.output_dir,
            "format": options.format,
            "reference_images": len(options.blend_images),
        })
        results = await self.scheduler.generate_many(needs, options, concurrency, token)
        summary = summarize(results)

        logger.info(
            f"Batch complete: {summary.successful}/{summary.total} succeeded, "
            f"{summary.failed} failed, {summary.warnings} with quality warnings, "
            f"cost ${summary.total_cost:.4f}"
        )

        if summary.total_cost > 0:
            self.cost_tracker.track_cost(CostEntry(
                operation="batch_generation",
                cost=summary.total_cost,
                model=self.settings.model,
                assets_generated=summary.successful,
            ))
            budget = self.cost_tracker.check_budget()
            if not budget.within_budget:
                logger.warning(
                    f"Monthly budget exceeded: ${budget.spent:.2f} spent of ${budget.limit:.2f}"
                )

        return BatchReport(results=results, summary=summary)

    async def generate_with_character_consistency(
        self,
        needs: Sequence[AssetNeed],
        reference_image: Optional[str] = None,
        options: Optional[GenerationOptions] = None,
        token: Optional[CancellationToken] = None
    ) -> BatchReport:
        """
        Generate assets that share one character or style.

        Each need's prompt is rewritten to refer to the reference character and
        the reference image is attached to every request.
        """
        options = options or default_options()
        consistent_needs = [
            replace(
                need,
                suggested_prompt=(
                    f"Using the character/style from the reference image, {_base_prompt(need)}. "
                    f"Maintain visual consistency and character identity throughout."
                ),
            )
            for need in needs
        ]

        blend_images = (reference_image,) if reference_image else options.blend_images
        consistent_options = replace(options, enable_character_consistency=True, blend_images=blend_images)

        logger.info(f"Generating {len(needs)} asset(s) with character consistency")
        return await self.run(consistent_needs, consistent_options, CHARACTER_CONSISTENCY_CONCURRENCY, token)

    async def generate_with_image_blending(
        self,
        need: AssetNeed,
        blend_images: Sequence[str],
        options: Optional[GenerationOptions] = None,
        token: Optional[CancellationToken] = None
    ) -> GeneratedAsset:
        """
        Generate one asset by blending several source images.

        Raises:
            ValidationError: If no blend images are given.
        """
        if not blend_images:
            raise ValidationError("At least one blend image is required", field="blend_images")

        options = options or default_options()
        blended_need = replace(
            need,
            suggested_prompt=(
                f"Create a {need.type} by blending elements from multiple source images. "
                f"{_base_prompt(need)}. Harmoniously combine the visual elements while "
                f"maintaining the core design requirements."
            ),
        )

        logger.info(f"Blending {len(blend_images)} image(s) into a {need.type}")
        report = await self.run([blended_need], replace(options, blend_images=tuple(blend_images)), 1, token)
        return report.results[0]

    def estimate_cost(self, asset_count: int) -> float:
        """
        Estimate the cost of generating asset_count assets without regeneration.
        """
        return round(asset_count * self.settings.cost_per_generation, 6)

    def health_check(self) -> Dict[str, Any]:
        """
        Check that the pipeline is configured well enough to run.

        Returns:
            Dict with a "healthy" flag, the service info or the configuration
            error, and the current budget status.
        """
        budget = self.cost_tracker.check_budget()
        status: Dict[str, Any] = {
            "model": self.settings.model,
            "within_budget": budget.within_budget,
            "budget_remaining": budget.remaining,
        }

        try:
            status["service"] = self.adapter.get_service_info()
        except ConfigurationError as e:
            logger.error(f"Health check failed: {e}")
            status.update(healthy=False, error=str(e))
            return status

        status["healthy"] = True
        return status

    def get_generation_stats(self) -> Dict[str, Any]:
        """
        Describe the active generation settings and features.
        """
        return {
            "model": self.settings.model,
            "quality_mode": self.settings.quality_mode,
            "cost_per_generation": self.settings.cost_per_generation,
            "quality_threshold": self.settings.quality_threshold,
            "max_regeneration_attempts": self.settings.max_regeneration_attempts,
            "concurrency": self.settings.concurrency,
            "features": list(FEATURES),
        }

    def save_report(self, report: BatchReport, report_path: str) -> str:
        """
        Save a batch report as JSON.

        Args:
            report: Report to save.
            report_path: Destination file.

        Returns:
            The report path.
        """
        ensure_dir(os.path.dirname(os.path.abspath(report_path)))
        with open(report_path, "w") as f:
            json.dump(report.to_dict(), f, indent=2)
        logger.info(f"Saved report to {report_path}")
        return report_path
