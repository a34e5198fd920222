"""
Heuristic quality validation of generated files.

The score starts at 1.0 and each detected defect subtracts a penalty from the
QualityPolicy. Pixel statistics are computed with numpy. Colour variation is
averaged over every channel including alpha, so a flat shape on a
transparent background still varies; highlight and shadow clipping only
look at the colour channels.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
from PIL import Image

from genass.core.config import get_config_value
from genass.core.constants import DEFAULT_QUALITY_THRESHOLD, TRANSPARENT_ASSET_TYPES
from genass.core.error_handler import ConfigurationError
from genass.core.logging_config import get_logger
from genass.core.utils import parse_aspect_ratio
from genass.generation.models import AssetNeed, QualityCheckResult

# Initialize logger
logger = get_logger(__name__)

DEFAULT_PENALTIES = {
    "dimension_mismatch": 0.30,
    "file_too_small": 0.20,
    "file_too_large": 0.10,
    "low_variation": 0.15,
    "blown_highlights": 0.10,
    "crushed_blacks": 0.10,
    "unexpected_format": 0.15,
    "missing_alpha": 0.10,
    "aspect_ratio_deviation": 0.10,
}

ACCEPTED_FORMATS = ("png", "jpeg", "webp")
ALPHA_MODES = ("RGBA", "LA", "PA", "RGBa", "La")

MIN_STDEV = 10.0
HIGHLIGHT_MEAN = 240.0
SHADOW_MEAN = 15.0
ASPECT_RATIO_TOLERANCE = 0.01

# A file smaller than pixels/1000 KB or larger than pixels/50 KB is suspicious
MIN_KB_PER_PIXEL = 1 / 1000
MAX_KB_PER_PIXEL = 1 / 50

ESCAPE_SCORE = 0.5


@dataclass(frozen=True)
class QualityPolicy:
    """
    Penalty table and pass threshold used by the validator.
    """

    penalties: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_PENALTIES))
    threshold: float = DEFAULT_QUALITY_THRESHOLD

    def penalty(self, defect: str) -> float:
        return self.penalties.get(defect, DEFAULT_PENALTIES.get(defect, 0.0))

    @classmethod
    def from_config(cls) -> "QualityPolicy":
        penalties = dict(DEFAULT_PENALTIES)
        configured = get_config_value("quality.penalties", {}) or {}

        unknown = sorted(set(configured) - set(DEFAULT_PENALTIES))
        if unknown:
            raise ConfigurationError(
                f"Unknown quality penalties: {', '.join(unknown)}",
                component="quality"
            )

        penalties.update({key: float(value) for key, value in configured.items()})
        threshold = float(get_config_value("generation.quality_threshold", DEFAULT_QUALITY_THRESHOLD))
        return cls(penalties=penalties, threshold=threshold)


class QualityValidator:
    """
    Scores generated image files against their asset need.
    """

    def __init__(self, policy: Optional[QualityPolicy] = None):
        self.policy = policy or QualityPolicy()

    def validate(self, file_path: str, need: AssetNeed) -> QualityCheckResult:
        """
        Validate a generated file.

        Never raises: if the check itself fails, the file is passed with a
        neutral score and the error recorded as an issue.

        Args:
            file_path (str): Generated file
            need (AssetNeed): The need the file was generated for

        Returns:
            QualityCheckResult: Pass flag, score in [0, 1] and issues found
        """
        try:
            result = self._validate(file_path, need)
        except Exception as e:
            logger.warning(f"Quality check failed for {file_path}: {e}")
            return QualityCheckResult(passed=True, score=ESCAPE_SCORE, issues=[f"Quality check error: {e}"])

        logger.info(
            f"Quality score for '{need.description}': {result.score:.2f} "
            f"({'passed' if result.passed else 'failed'}, {len(result.issues)} issue(s))"
        )
        return result

    def _validate(self, file_path: str, need: AssetNeed) -> QualityCheckResult:
        issues: List[str] = []
        score = 1.0

        def penalize(defect: str, message: str) -> None:
            nonlocal score
            score -= self.policy.penalty(defect)
            issues.append(message)

        size_kb = os.path.getsize(file_path) / 1024
        expected = need.dimensions

        with Image.open(file_path) as img:
            img.load()
            width, height = img.size
            image_format = (img.format or "").lower()
            has_alpha = img.mode in ALPHA_MODES or (img.mode == "P" and "transparency" in img.info)
            native = np.asarray(img.convert("RGBA" if has_alpha else "RGB"), dtype=np.float64)

        if (width, height) != (expected.width, expected.height):
            penalize(
                "dimension_mismatch",
                f"Dimension mismatch: expected {expected.width}x{expected.height}, got {width}x{height}"
            )

        expected_pixels = expected.pixel_count
        if size_kb < expected_pixels * MIN_KB_PER_PIXEL:
            penalize("file_too_small", f"File size suspiciously small ({size_kb:.1f}KB), may indicate low quality")
        elif size_kb > expected_pixels * MAX_KB_PER_PIXEL:
            penalize("file_too_large", f"File size unusually large ({size_kb:.1f}KB), may need optimization")

        # Variation counts every channel, alpha included; clipping only looks at colour
        stdevs = native.reshape(-1, native.shape[-1]).std(axis=0)
        channels = native[..., :3].reshape(-1, 3)
        means = channels.mean(axis=0)
        minimums = channels.min(axis=0)
        maximums = channels.max(axis=0)

        if stdevs.mean() < MIN_STDEV:
            penalize("low_variation", "Low color variation detected, image may be too uniform or blank")

        if np.any((maximums == 255) & (means > HIGHLIGHT_MEAN)):
            penalize("blown_highlights", "Image may be overexposed (blown highlights)")

        if np.any((minimums == 0) & (means < SHADOW_MEAN)):
            penalize("crushed_blacks", "Image may be underexposed (crushed blacks)")

        if image_format not in ACCEPTED_FORMATS:
            penalize("unexpected_format", f"Unexpected image format: {image_format or 'unknown'}")

        if need.type in TRANSPARENT_ASSET_TYPES and not has_alpha:
            penalize("missing_alpha", f"{need.type} should have a transparent background (alpha channel)")

        expected_ratio = parse_aspect_ratio(expected.aspect_ratio) or expected.width / expected.height
        actual_ratio = width / height
        if abs(actual_ratio - expected_ratio) > ASPECT_RATIO_TOLERANCE:
            penalize(
                "aspect_ratio_deviation",
                f"Aspect ratio deviation: expected {expected_ratio:.2f}, got {actual_ratio:.2f}"
            )

        score = round(max(0.0, min(1.0, score)), 4)
        return QualityCheckResult(passed=score >= self.policy.threshold, score=score, issues=issues)
