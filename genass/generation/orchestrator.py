"""
Per-asset generation state machine.

One asset need goes through COMPOSING once, then loops
GENERATING -> PROCESSING -> VALIDATING until the quality check passes
(PASSED) or the regeneration budget is spent (EXHAUSTED, kept with a
warning). Every loop that fails validation with budget left is a RETRY: the
rejected file is deleted before the next generation. Any error raised along
the way ends in FAILED and is reported on the result, never raised.
"""

import asyncio
import os
import time
from enum import Enum
from typing import Callable, Optional

from genass.core.logging_config import get_logger
from genass.generation.cancellation import CancellationToken, SleepFunc, cancellable_sleep
from genass.generation.generation_client import GenerationClient
from genass.generation.image_processor import ImagePostProcessor
from genass.generation.models import (
    AssetNeed,
    AssetMetadata,
    GeneratedAsset,
    GenerationOptions,
    ProcessedImage,
    QualityCheckResult,
)
from genass.generation.prompt_composer import PromptComposer
from genass.generation.quality_validator import QualityValidator
from genass.generation.settings import GeneratorSettings

# Initialize logger
logger = get_logger(__name__)


class GenerationState(Enum):
    COMPOSING = "composing"
    GENERATING = "generating"
    PROCESSING = "processing"
    VALIDATING = "validating"
    PASSED = "passed"
    RETRY = "retry"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class AssetGenerationOrchestrator:
    """
    Drives one asset need from prompt to validated file.
    """

    def __init__(
        self,
        composer: PromptComposer,
        client: GenerationClient,
        processor: ImagePostProcessor,
        validator: QualityValidator,
        settings: Optional[GeneratorSettings] = None,
        sleep: SleepFunc = cancellable_sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the orchestrator.

        Args:
            composer (PromptComposer): Builds the prompt
            client (GenerationClient): Calls the remote service
            processor (ImagePostProcessor): Writes the image file
            validator (QualityValidator): Scores the written file
            settings (GeneratorSettings, optional): Cost, regeneration budget and delay
            sleep: Cancellable sleep used between regenerations
            clock: Monotonic clock in seconds, used for generation time
        """
        self.composer = composer
        self.client = client
        self.processor = processor
        self.validator = validator
        self.settings = settings or GeneratorSettings()
        self.sleep = sleep
        self.clock = clock

    async def generate_asset(
        self,
        need: AssetNeed,
        options: GenerationOptions,
        token: Optional[CancellationToken] = None
    ) -> GeneratedAsset:
        """
        Generate one asset, regenerating while quality is below threshold.

        Args:
            need (AssetNeed): The asset to generate
            options (GenerationOptions): Batch options
            token (CancellationToken, optional): Cancels pending waits

        Returns:
            GeneratedAsset: Success (possibly with a quality warning) or failure
        """
        start = self.clock()
        max_regenerations = self.settings.max_regeneration_attempts
        prompt: Optional[str] = None
        generations = 0
        regenerations = 0
        state = GenerationState.COMPOSING

        try:
            prompt = self.composer.compose(need)

            while True:
                state = self._enter(GenerationState.GENERATING, need)
                image = await self.client.generate(prompt, need, options, token)
                generations += 1

                state = self._enter(GenerationState.PROCESSING, need)
                processed = await asyncio.to_thread(self.processor.process, image.data, need, options)

                state = self._enter(GenerationState.VALIDATING, need)
                quality = await asyncio.to_thread(self.validator.validate, processed.file_path, need)

                if quality.passed:
                    self._enter(GenerationState.PASSED, need)
                    return self._success(need, prompt, processed, quality, generations, regenerations, start)

                if regenerations < max_regenerations:
                    state = self._enter(GenerationState.RETRY, need)
                    logger.info(
                        f"Quality score {quality.score:.2f} below threshold for '{need.description}', "
                        f"regenerating ({regenerations + 1}/{max_regenerations})"
                    )
                    self._discard(processed.file_path)
                    await self.sleep(self.settings.regeneration_delay, token)
                    regenerations += 1
                    continue

                self._enter(GenerationState.EXHAUSTED, need)
                warning = (
                    f"Quality score {quality.score:.2f} below threshold after "
                    f"{regenerations} regeneration attempt(s): {'; '.join(quality.issues)}"
                )
                logger.warning(f"Keeping '{need.description}' despite low quality. {warning}")
                return self._success(
                    need, prompt, processed, quality, generations, regenerations, start, warning=warning
                )

        except Exception as e:
            self._enter(GenerationState.FAILED, need)
            logger.error(f"Failed to generate '{need.description}' while {state.value}: {e}")
            return GeneratedAsset(
                asset_need=need,
                file_path="",
                prompt=prompt if prompt is not None else need.suggested_prompt,
                success=False,
                error=str(e),
                metadata=AssetMetadata(
                    model=self.client.model,
                    generation_time_ms=self._elapsed_ms(start),
                    cost=self._cost(generations),
                ),
            )

    def _success(
        self,
        need: AssetNeed,
        prompt: str,
        processed: ProcessedImage,
        quality: QualityCheckResult,
        generations: int,
        regenerations: int,
        start: float,
        warning: Optional[str] = None
    ) -> GeneratedAsset:
        return GeneratedAsset(
            asset_need=need,
            file_path=processed.file_path,
            prompt=prompt,
            success=True,
            metadata=AssetMetadata(
                model=self.client.model,
                generation_time_ms=self._elapsed_ms(start),
                cost=self._cost(generations),
                quality_score=quality.score,
                regeneration_attempts=regenerations,
                warning=warning,
                degraded=processed.degraded,
                quality_issues=tuple(quality.issues),
            ),
        )

    def _enter(self, state: GenerationState, need: AssetNeed) -> GenerationState:
        logger.debug(f"'{need.description}' -> {state.value}")
        return state

    def _discard(self, file_path: str) -> None:
        try:
            os.remove(file_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not delete rejected image {file_path}: {e}")

    def _cost(self, generations: int) -> float:
        return round(generations * self.settings.cost_per_generation, 6)

    def _elapsed_ms(self, start: float) -> int:
        return int((self.clock() - start) * 1000)
