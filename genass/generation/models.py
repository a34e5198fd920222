"""
Data models for the asset generation pipeline.

AssetNeed and GenerationOptions are the inputs, GeneratedAsset is the terminal
result for one need. All of them are frozen: a need drives exactly one
generation sequence and a result is never mutated after it is returned.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple

from genass.core.constants import DEFAULT_MAX_RETRIES, DEFAULT_QUALITY


@dataclass(frozen=True)
class Dimensions:
    """Target pixel size of an asset plus its declared aspect ratio ("W:H")."""

    width: int
    height: int
    aspect_ratio: str = ""

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dimensions":
        return cls(
            width=int(data["width"]),
            height=int(data["height"]),
            aspect_ratio=str(data.get("aspectRatio", data.get("aspect_ratio", "")) or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"width": self.width, "height": self.height, "aspectRatio": self.aspect_ratio}


@dataclass(frozen=True)
class AssetNeed:
    """
    Description of one image to produce.

    Attributes:
        type: Asset type (icon, logo, banner, illustration, background,
              social-media, ui-element). Unknown types are allowed.
        description: Short human description, also used for the file name.
        context: Where the need was discovered.
        dimensions: Target size.
        usage: Places the asset will be used.
        priority: high, medium or low.
        suggested_prompt: Terse generation prompt to expand.
        file_path: Path the surrounding application expects the asset at.
    """

    type: str
    description: str
    dimensions: Dimensions
    context: str = ""
    usage: Tuple[str, ...] = ()
    priority: str = "medium"
    suggested_prompt: str = ""
    file_path: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssetNeed":
        """Build a need from a camelCase or snake_case dictionary."""
        dimensions = data["dimensions"]
        if not isinstance(dimensions, Dimensions):
            dimensions = Dimensions.from_dict(dimensions)

        return cls(
            type=str(data["type"]),
            description=str(data.get("description", "")),
            dimensions=dimensions,
            context=str(data.get("context", "")),
            usage=tuple(data.get("usage") or ()),
            priority=str(data.get("priority", "medium")),
            suggested_prompt=str(data.get("suggestedPrompt", data.get("suggested_prompt", "")) or ""),
            file_path=str(data.get("filePath", data.get("file_path", "")) or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            "context": self.context,
            "dimensions": self.dimensions.to_dict(),
            "usage": list(self.usage),
            "priority": self.priority,
            "suggestedPrompt": self.suggested_prompt,
            "filePath": self.file_path,
        }


@dataclass(frozen=True)
class GenerationOptions:
    """
    Options shared read-only by every asset of one batch.

    Attributes:
        output_dir: Directory generated files are written to.
        format: Output encoding, one of png, jpg, webp.
        quality: Encoder quality; defaults to 90 for png and 85 otherwise.
        max_retries: Remote attempts per generation; defaults to 3.
        enable_character_consistency: Ask the model to keep a consistent character.
        blend_images: Reference image paths attached to every request.
    """

    output_dir: str
    format: str = "png"
    quality: Optional[int] = None
    max_retries: Optional[int] = None
    enable_character_consistency: bool = False
    blend_images: Tuple[str, ...] = ()

    @property
    def effective_quality(self) -> int:
        if self.quality:
            return self.quality
        return DEFAULT_QUALITY.get(self.format, 85)

    @property
    def effective_max_retries(self) -> int:
        return self.max_retries or DEFAULT_MAX_RETRIES


@dataclass(frozen=True)
class QualityCheckResult:
    """Outcome of validating one generated file."""

    passed: bool
    score: float
    issues: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class GeneratedImage:
    """Raw image returned by the remote generation service."""

    data: bytes
    mime_type: str = "image/png"


@dataclass(frozen=True)
class ProcessedImage:
    """
    File written by the post-processor.

    degraded is True when decoding or encoding failed and the raw service
    bytes were written instead of a processed image.
    """

    file_path: str
    degraded: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class AssetMetadata:
    model: str
    generation_time_ms: int
    cost: float
    quality_score: Optional[float] = None
    regeneration_attempts: Optional[int] = None
    warning: Optional[str] = None
    degraded: bool = False
    quality_issues: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GeneratedAsset:
    """Terminal result of attempting to satisfy one asset need."""

    asset_need: AssetNeed
    file_path: str
    prompt: str
    success: bool
    metadata: AssetMetadata
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        metadata = asdict(self.metadata)
        metadata["quality_issues"] = list(self.metadata.quality_issues)
        return {
            "asset_need": self.asset_need.to_dict(),
            "file_path": self.file_path,
            "prompt": self.prompt,
            "success": self.success,
            "error": self.error,
            "metadata": metadata,
        }
