"""
Retrying client for the remote image generation service.

The client turns a composed prompt into request text (adding consistency,
quality, aspect ratio and blending clauses), attaches reference images read
from disk, and calls the adapter with bounded retries and exponential
backoff. Rate-limit errors back off from a longer base delay than other
errors. The blocking adapter call runs on a worker thread.
"""

import asyncio
from typing import List, Optional, Sequence

from genass.core.constants import (
    DEFAULT_QUALITY_MODE,
    RATE_LIMIT_BACKOFF_BASE,
    DEFAULT_BACKOFF_BASE,
    MAX_BACKOFF_DELAY,
)
from genass.core.error_handler import (
    APIError,
    GenerationError,
    GenerationCancelled,
    is_rate_limit_error,
    log_api_error,
)
from genass.core.logging_config import get_logger
from genass.core.utils import guess_image_mime_type, is_valid_image_file
from genass.generation.adapters.base import ImageGenerationAdapter
from genass.generation.cancellation import CancellationToken, SleepFunc, cancellable_sleep
from genass.generation.models import AssetNeed, GenerationOptions, GeneratedImage

# Initialize logger
logger = get_logger(__name__)

CHARACTER_CONSISTENCY_CLAUSE = (
    "CHARACTER CONSISTENCY: Maintain consistent character design, style, colors, "
    "and proportions across the design."
)
QUALITY_MODE_CLAUSE = (
    "QUALITY MODE: Generate in HIGH QUALITY with maximum detail, clarity, and professional "
    "finish. Optimize every pixel for production use."
)


def backoff_delay(
    attempt: int,
    rate_limited: bool,
    rate_limit_base: float = RATE_LIMIT_BACKOFF_BASE,
    default_base: float = DEFAULT_BACKOFF_BASE,
    max_delay: float = MAX_BACKOFF_DELAY
) -> float:
    """
    Delay in seconds before the attempt that follows a failed one.

    Args:
        attempt (int): 1-based number of the attempt that just failed
        rate_limited (bool): Whether that attempt failed due to rate limiting

    Returns:
        float: min(base * 2^(attempt - 1), max_delay)
    """
    base = rate_limit_base if rate_limited else default_base
    return min(base * (2 ** (attempt - 1)), max_delay)


class GenerationClient:
    """
    Calls an image generation adapter with retries and backoff.
    """

    def __init__(
        self,
        adapter: ImageGenerationAdapter,
        quality_mode: str = DEFAULT_QUALITY_MODE,
        sleep: SleepFunc = cancellable_sleep
    ):
        """
        Initialize the client.

        Args:
            adapter (ImageGenerationAdapter): Service adapter
            quality_mode (str): "high" adds the quality mode clause
            sleep: Cancellable sleep used for backoff waits
        """
        self.adapter = adapter
        self.quality_mode = quality_mode
        self.sleep = sleep

    @property
    def model(self) -> str:
        return getattr(self.adapter, "model", "unknown")

    def build_request_text(
        self,
        prompt: str,
        need: AssetNeed,
        options: GenerationOptions,
        reference_count: int = 0
    ) -> str:
        """
        Append the request clauses to a composed prompt.

        Args:
            prompt (str): Composed prompt
            need (AssetNeed): The asset need being generated
            options (GenerationOptions): Batch options
            reference_count (int): Number of reference images attached

        Returns:
            str: Request text sent to the service
        """
        parts = [prompt]

        if options.enable_character_consistency:
            parts.append(CHARACTER_CONSISTENCY_CLAUSE)

        if self.quality_mode == "high":
            parts.append(QUALITY_MODE_CLAUSE)

        dimensions = need.dimensions
        aspect_ratio = dimensions.aspect_ratio or f"{dimensions.width}:{dimensions.height}"
        parts.append(
            f"ASPECT RATIO ENFORCEMENT: MUST maintain exact {aspect_ratio} aspect ratio "
            f"({dimensions.width}:{dimensions.height}). Do not crop or distort."
        )

        if reference_count > 0:
            parts.append(
                f"IMAGE BLENDING: Harmoniously blend visual elements from the {reference_count} "
                f"reference image(s) provided above while maintaining the design requirements."
            )

        return "\n\n".join(parts)

    def load_reference_images(self, paths: Sequence[str]) -> List[GeneratedImage]:
        """
        Read reference images from disk.

        Missing, unreadable or non-image files are skipped with a warning.

        Args:
            paths (Sequence[str]): Image file paths

        Returns:
            List[GeneratedImage]: Loaded images in input order
        """
        images = []
        for path in paths:
            if not is_valid_image_file(path):
                logger.warning(f"Skipping reference image {path}: not an image file")
                continue
            try:
                with open(path, "rb") as f:
                    data = f.read()
            except OSError as e:
                logger.warning(f"Skipping unreadable reference image {path}: {e}")
                continue
            images.append(GeneratedImage(data=data, mime_type=guess_image_mime_type(path)))

        if paths:
            logger.info(f"Loaded {len(images)} of {len(paths)} reference image(s)")
        return images

    async def generate(
        self,
        prompt: str,
        need: AssetNeed,
        options: GenerationOptions,
        token: Optional[CancellationToken] = None
    ) -> GeneratedImage:
        """
        Generate one image, retrying transient failures.

        Args:
            prompt (str): Composed prompt
            need (AssetNeed): The asset need being generated
            options (GenerationOptions): Batch options
            token (CancellationToken, optional): Cancels backoff waits

        Returns:
            GeneratedImage: The generated image

        Raises:
            GenerationError: If every attempt failed
            GenerationCancelled: If the token was cancelled
        """
        reference_images = []
        if options.blend_images:
            reference_images = await asyncio.to_thread(self.load_reference_images, options.blend_images)

        request_text = self.build_request_text(prompt, need, options, len(reference_images))
        max_retries = options.effective_max_retries
        last_error: Optional[BaseException] = None

        for attempt in range(1, max_retries + 1):
            if token is not None:
                token.raise_if_cancelled()

            try:
                image = await asyncio.to_thread(self.adapter.generate_image, request_text, reference_images)
                if attempt > 1:
                    logger.info(f"Generation for '{need.description}' succeeded on attempt {attempt}")
                return image
            except GenerationCancelled:
                raise
            except Exception as e:
                last_error = e
                rate_limited = is_rate_limit_error(e)
                logger.warning(
                    f"Generation attempt {attempt}/{max_retries} for '{need.description}' failed"
                    f"{' (rate limited)' if rate_limited else ''}: {e}"
                )

                if attempt < max_retries:
                    delay = backoff_delay(attempt, rate_limited)
                    logger.info(f"Retrying in {delay:.0f}s")
                    await self.sleep(delay, token)

        if isinstance(last_error, APIError):
            log_api_error(last_error)

        raise GenerationError(
            f"Failed to generate image after {max_retries} attempts",
            last_error=last_error,
            attempts=max_retries
        ) from last_error
