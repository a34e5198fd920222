"""
Concurrency-limited batch generation.

Needs are split into consecutive groups of ``concurrency``. Assets within a
group run concurrently; groups run one after another with a pause in between
to stay under the service's rate limit. One failing asset never affects its
siblings, and results always come back in input order.
"""

import asyncio
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence, TypeVar

from genass.core.constants import BATCH_DELAY, DEFAULT_CONCURRENCY
from genass.core.error_handler import GenerationCancelled
from genass.core.logging_config import get_logger
from genass.generation.cancellation import CancellationToken, SleepFunc, cancellable_sleep
from genass.generation.input_validator import validate_generation_request
from genass.generation.models import AssetMetadata, AssetNeed, GeneratedAsset, GenerationOptions
from genass.generation.orchestrator import AssetGenerationOrchestrator

# Initialize logger
logger = get_logger(__name__)

T = TypeVar("T")

CANCELLED_MESSAGE = "Generation cancelled before this asset started"


@dataclass(frozen=True)
class BatchSummary:
    total: int
    successful: int
    failed: int
    warnings: int
    degraded: int
    total_cost: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def create_batches(items: Sequence[T], size: int) -> List[List[T]]:
    """
    Split items into consecutive groups of at most size.

    Args:
        items: Items to split
        size (int): Group size, at least 1

    Returns:
        List[List[T]]: Groups in input order
    """
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def summarize(results: Sequence[GeneratedAsset]) -> BatchSummary:
    """
    Reduce a finished batch to counts and total cost.
    """
    return BatchSummary(
        total=len(results),
        successful=sum(1 for r in results if r.success),
        failed=sum(1 for r in results if not r.success),
        warnings=sum(1 for r in results if r.success and r.metadata.warning),
        degraded=sum(1 for r in results if r.metadata.degraded),
        total_cost=round(sum(r.metadata.cost for r in results), 6),
    )


class BatchScheduler:
    """
    Runs many asset generations under a concurrency limit.
    """

    def __init__(
        self,
        orchestrator: AssetGenerationOrchestrator,
        batch_delay: float = BATCH_DELAY,
        sleep: SleepFunc = cancellable_sleep
    ):
        self.orchestrator = orchestrator
        self.batch_delay = batch_delay
        self.sleep = sleep

    async def generate_many(
        self,
        needs: Sequence[AssetNeed],
        options: GenerationOptions,
        concurrency: int = DEFAULT_CONCURRENCY,
        token: Optional[CancellationToken] = None
    ) -> List[GeneratedAsset]:
        """
        Generate every need, concurrency at a time.

        Args:
            needs (Sequence[AssetNeed]): Asset needs in the order results are wanted
            options (GenerationOptions): Options shared by every asset
            concurrency (int): Group size
            token (CancellationToken, optional): Cancels pending waits and
                skips groups that have not started

        Returns:
            List[GeneratedAsset]: One result per need, in input order

        Raises:
            ValidationError: If needs, options or concurrency are invalid
        """
        validate_generation_request(needs, options, concurrency)

        batches = create_batches(needs, concurrency)
        results: List[GeneratedAsset] = []
        logger.info(f"Generating {len(needs)} asset(s) in {len(batches)} batch(es) of up to {concurrency}")

        for index, batch in enumerate(batches):
            if token is not None and token.cancelled:
                break

            logger.info(f"Starting batch {index + 1}/{len(batches)} ({len(batch)} asset(s))")
            outcomes = await asyncio.gather(
                *(self.orchestrator.generate_asset(need, options, token) for need in batch),
                return_exceptions=True
            )
            results.extend(self._settle(need, outcome) for need, outcome in zip(batch, outcomes))

            if index < len(batches) - 1:
                try:
                    await self.sleep(self.batch_delay, token)
                except GenerationCancelled:
                    break

        if len(results) < len(needs):
            remaining = needs[len(results):]
            logger.warning(f"Generation cancelled, {len(remaining)} asset(s) not started")
            results.extend(self._failure(need, CANCELLED_MESSAGE) for need in remaining)

        return results

    def _settle(self, need: AssetNeed, outcome: Any) -> GeneratedAsset:
        if isinstance(outcome, GeneratedAsset):
            return outcome
        if isinstance(outcome, Exception):
            logger.error(f"Asset task for '{need.description}' raised: {outcome}")
            return self._failure(need, str(outcome) or type(outcome).__name__)
        if isinstance(outcome, BaseException):
            raise outcome
        return self._failure(need, f"Unexpected result: {outcome!r}")

    def _failure(self, need: AssetNeed, error: str) -> GeneratedAsset:
        return GeneratedAsset(
            asset_need=need,
            file_path="",
            prompt=need.suggested_prompt,
            success=False,
            error=error,
            metadata=AssetMetadata(model=self.orchestrator.client.model, generation_time_ms=0, cost=0.0),
        )
