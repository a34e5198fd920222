"""
Generator settings resolved from configuration and the environment.
"""

import os
from dataclasses import dataclass

from genass.core.config import get_config_value
from genass.core.constants import (
    DEFAULT_IMAGE_MODEL,
    DEFAULT_QUALITY_MODE,
    DEFAULT_COST_PER_GENERATION,
    DEFAULT_QUALITY_THRESHOLD,
    DEFAULT_MAX_REGENERATION_ATTEMPTS,
    DEFAULT_CONCURRENCY,
    DEFAULT_NEGATIVE_PROMPT,
    REGENERATION_DELAY,
    BATCH_DELAY,
)
from genass.core.error_handler import ConfigurationError


@dataclass(frozen=True)
class GeneratorSettings:
    """
    Knobs owned by the surrounding application, not by the pipeline.

    Environment variables override the configuration file:
    IMAGE_GENERATION_MODEL, IMAGE_GENERATION_QUALITY, IMAGE_COST_PER_GENERATION.
    """

    model: str = DEFAULT_IMAGE_MODEL
    quality_mode: str = DEFAULT_QUALITY_MODE
    cost_per_generation: float = DEFAULT_COST_PER_GENERATION
    quality_threshold: float = DEFAULT_QUALITY_THRESHOLD
    max_regeneration_attempts: int = DEFAULT_MAX_REGENERATION_ATTEMPTS
    concurrency: int = DEFAULT_CONCURRENCY
    regeneration_delay: float = REGENERATION_DELAY
    batch_delay: float = BATCH_DELAY
    negative_prompt: str = DEFAULT_NEGATIVE_PROMPT

    @classmethod
    def from_config(cls) -> "GeneratorSettings":
        model = os.environ.get("IMAGE_GENERATION_MODEL") or get_config_value(
            "generation.model", DEFAULT_IMAGE_MODEL
        )
        quality_mode = os.environ.get("IMAGE_GENERATION_QUALITY") or get_config_value(
            "generation.quality", DEFAULT_QUALITY_MODE
        )
        cost = os.environ.get("IMAGE_COST_PER_GENERATION") or get_config_value(
            "generation.cost_per_generation", DEFAULT_COST_PER_GENERATION
        )

        try:
            cost = float(cost)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid cost per generation: {cost!r}",
                component="generation"
            ) from e

        if quality_mode not in ("standard", "high"):
            raise ConfigurationError(
                f"Invalid generation quality mode: {quality_mode!r} (expected 'standard' or 'high')",
                component="generation"
            )

        return cls(
            model=model,
            quality_mode=quality_mode,
            cost_per_generation=cost,
            quality_threshold=float(get_config_value("generation.quality_threshold", DEFAULT_QUALITY_THRESHOLD)),
            max_regeneration_attempts=int(get_config_value(
                "generation.max_regeneration_attempts", DEFAULT_MAX_REGENERATION_ATTEMPTS
            )),
            concurrency=int(get_config_value("generation.concurrency", DEFAULT_CONCURRENCY)),
            regeneration_delay=float(get_config_value("generation.regeneration_delay", REGENERATION_DELAY)),
            batch_delay=float(get_config_value("generation.batch_delay", BATCH_DELAY)),
            negative_prompt=get_config_value("generation.negative_prompt", DEFAULT_NEGATIVE_PROMPT),
        )
