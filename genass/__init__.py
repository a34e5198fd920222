"""
GenAss - Asset Generation Pipeline

A Python package that turns a list of asset needs (icons, logos, banners, ...)
into generated image files, with quality validation, bounded regeneration and
cost controls around a rate-limited remote image generation service.
"""

__version__ = "0.1.0"
__author__ = "GenAss Team"

# Import main components for easier access
from genass.generation.models import (
    AssetNeed,
    Dimensions,
    GenerationOptions,
    GeneratedAsset,
    QualityCheckResult,
)
from genass.generation.prompt_composer import PromptComposer
from genass.generation.generation_client import GenerationClient
from genass.generation.image_processor import ImagePostProcessor
from genass.generation.quality_validator import QualityValidator, QualityPolicy
from genass.generation.orchestrator import AssetGenerationOrchestrator
from genass.generation.batch_scheduler import BatchScheduler
from genass.pipeline.pipeline_runner import PipelineRunner
