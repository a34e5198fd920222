"""
Post-processing of generated images.

Generated images rarely come back at the exact size an asset needs. The
post-processor scales them to fit the target box without distortion, pads
the remainder with transparency, encodes to the requested format and writes
the result atomically to a unique file in the output directory.

If the service bytes cannot be decoded or encoded, the raw bytes are written
instead and the result is flagged as degraded.
"""

import io
import os
import time
from typing import Callable, Optional

from PIL import Image

from genass.core.logging_config import get_logger
from genass.core.utils import ensure_dir, slugify, write_atomic
from genass.generation.models import AssetNeed, GenerationOptions, ProcessedImage

# Initialize logger
logger = get_logger(__name__)

PNG_COMPRESS_LEVEL = 6
WEBP_METHOD = 6

# Modes the PNG encoder can store without conversion
PNG_MODES = ("1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA")


def fit_to_canvas(img: Image.Image, width: int, height: int) -> Image.Image:
    """
    Scale an image to fit inside width x height and center it on a
    transparent canvas of exactly that size.

    Args:
        img (Image.Image): Source image
        width (int): Target width
        height (int): Target height

    Returns:
        Image.Image: RGBA image of size (width, height)
    """
    scale = min(width / img.width, height / img.height)
    new_width = max(1, min(width, round(img.width * scale)))
    new_height = max(1, min(height, round(img.height * scale)))

    resized = img.convert("RGBA").resize((new_width, new_height), Image.LANCZOS)

    canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    canvas.paste(resized, ((width - new_width) // 2, (height - new_height) // 2))
    return canvas


class ImagePostProcessor:
    """
    Resizes, encodes and writes generated images.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        """
        Initialize the post-processor.

        Args:
            clock: Returns the current time in milliseconds; used in file names
        """
        self.clock = clock or (lambda: int(time.time() * 1000))

    def process(self, image_bytes: bytes, need: AssetNeed, options: GenerationOptions) -> ProcessedImage:
        """
        Process raw image bytes into an output file.

        Args:
            image_bytes (bytes): Image returned by the service
            need (AssetNeed): The asset need being generated
            options (GenerationOptions): Batch options

        Returns:
            ProcessedImage: Written file, with degraded=True on fallback

        Raises:
            OSError: If the file cannot be written at all
        """
        ensure_dir(options.output_dir)
        file_path = self.reserve_path(need, options)

        try:
            encoded = self.encode(image_bytes, need, options)
        except Exception as e:
            logger.warning(f"Image processing failed for '{need.description}', saving raw bytes: {e}")
            self._write_or_release(file_path, image_bytes)
            return ProcessedImage(file_path=file_path, degraded=True, error=str(e))

        self._write_or_release(file_path, encoded)
        logger.info(f"Saved {need.type} asset to {file_path}")
        return ProcessedImage(file_path=file_path)

    def encode(self, image_bytes: bytes, need: AssetNeed, options: GenerationOptions) -> bytes:
        """
        Decode, fit and re-encode an image.

        Args:
            image_bytes (bytes): Source image data
            need (AssetNeed): Supplies the target dimensions
            options (GenerationOptions): Supplies format and quality

        Returns:
            bytes: Encoded image
        """
        width, height = need.dimensions.width, need.dimensions.height

        with Image.open(io.BytesIO(image_bytes)) as img:
            img.load()
            if img.size != (width, height):
                logger.debug(f"Fitting {img.width}x{img.height} image into {width}x{height}")
                img = fit_to_canvas(img, width, height)
            else:
                img = img.copy()

        buffer = io.BytesIO()
        quality = options.effective_quality

        if options.format == "jpg":
            img.convert("RGB").save(buffer, format="JPEG", quality=quality, progressive=True)
        elif options.format == "webp":
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA")
            img.save(buffer, format="WEBP", quality=quality, method=WEBP_METHOD)
        else:
            if img.mode not in PNG_MODES:
                img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
            img.save(buffer, format="PNG", compress_level=PNG_COMPRESS_LEVEL)

        return buffer.getvalue()

    def build_filename(self, need: AssetNeed, options: GenerationOptions, timestamp: int) -> str:
        dimensions = need.dimensions
        slug = slugify(need.description) or "asset"
        return f"{need.type}-{slug}-{dimensions.width}x{dimensions.height}-{timestamp}.{options.format}"

    def reserve_path(self, need: AssetNeed, options: GenerationOptions) -> str:
        """
        Create an empty output file with a name no other asset holds.

        The timestamp in the name is bumped until an exclusive create succeeds.

        Returns:
            str: Path of the reserved file
        """
        timestamp = self.clock()
        while True:
            file_path = os.path.join(options.output_dir, self.build_filename(need, options, timestamp))
            try:
                fd = os.open(file_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
            except FileExistsError:
                timestamp += 1
                continue
            os.close(fd)
            return file_path

    def _write_or_release(self, file_path: str, data: bytes) -> None:
        try:
            write_atomic(file_path, data)
        except OSError:
            if os.path.exists(file_path) and os.path.getsize(file_path) == 0:
                os.remove(file_path)
            raise
