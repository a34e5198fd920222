"""
Input validation for generation requests.

This module loads asset needs files (JSON or YAML) and validates them against
the asset needs schema, and checks needs and options before a batch starts so
that contract violations surface before any remote call is made.
"""

import json
import os
from typing import Any, List, Optional, Sequence

import jsonschema
import yaml

from genass.core.constants import PRIORITIES, SUPPORTED_FORMATS
from genass.core.error_handler import ValidationError
from genass.core.logging_config import get_logger
from genass.generation.models import AssetNeed, GenerationOptions
from genass.schemas import load_schema

# Initialize logger
logger = get_logger(__name__)


class InputValidator:
    """
    Validates asset needs files and generation requests.
    """

    def __init__(self):
        """
        Initialize the validator with schemas.
        """
        self.asset_needs_schema = load_schema("asset_needs")
        logger.debug("Loaded asset needs schema")

    def load_needs_file(self, needs_path: str) -> List[AssetNeed]:
        """
        Load and validate an asset needs file.

        Args:
            needs_path (str): Path to a .json, .yaml or .yml file

        Returns:
            List[AssetNeed]: The asset needs, in file order

        Raises:
            FileNotFoundError: If the file does not exist
            ValidationError: If the file cannot be parsed or violates the schema
        """
        logger.info(f"Loading asset needs: {needs_path}")

        if not os.path.isfile(needs_path):
            error_msg = f"Asset needs file not found: {needs_path}"
            logger.error(error_msg)
            raise FileNotFoundError(error_msg)

        with open(needs_path, "r") as f:
            raw = f.read()

        try:
            if needs_path.lower().endswith((".yaml", ".yml")):
                data = yaml.safe_load(raw)
            else:
                data = json.loads(raw)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            error_msg = f"Invalid asset needs file {needs_path}: {e}"
            logger.error(error_msg)
            raise ValidationError(error_msg, field="file", value=needs_path) from e

        return self.parse_needs(data)

    def parse_needs(self, data: Any) -> List[AssetNeed]:
        """
        Validate parsed needs data against the schema and build AssetNeeds.

        Args:
            data: A list of need dictionaries, or an object with an "assets" list

        Returns:
            List[AssetNeed]: The asset needs

        Raises:
            ValidationError: If the data violates the schema
        """
        try:
            jsonschema.validate(instance=data, schema=self.asset_needs_schema)
        except jsonschema.exceptions.ValidationError as e:
            location = "/".join(str(part) for part in e.absolute_path) or "root"
            error_msg = f"Asset needs validation failed at {location}: {e.message}"
            logger.error(error_msg)
            raise ValidationError(error_msg, field=location) from e

        items = data["assets"] if isinstance(data, dict) else data
        needs = [AssetNeed.from_dict(item) for item in items]
        logger.info(f"Loaded {len(needs)} asset need(s)")
        return needs


def validate_asset_need(need: Any, index: Optional[int] = None) -> None:
    """
    Check a single asset need.

    Raises:
        ValidationError: If the need is malformed
    """
    label = f"needs[{index}]" if index is not None else "need"

    if not isinstance(need, AssetNeed):
        raise ValidationError(f"{label} is not an AssetNeed", field=label, value=need)

    if not need.type or not isinstance(need.type, str):
        raise ValidationError(f"{label} has no type", field=f"{label}.type", value=need.type)

    dimensions = need.dimensions
    for name in ("width", "height"):
        value = getattr(dimensions, name, None)
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ValidationError(
                f"{label} {name} must be a positive integer",
                field=f"{label}.dimensions.{name}",
                value=value
            )

    if need.priority not in PRIORITIES:
        raise ValidationError(
            f"{label} priority must be one of {', '.join(PRIORITIES)}",
            field=f"{label}.priority",
            value=need.priority
        )


def validate_generation_options(options: Any) -> None:
    """
    Check batch options.

    Raises:
        ValidationError: If the options are malformed
    """
    if not isinstance(options, GenerationOptions):
        raise ValidationError("options is not a GenerationOptions", field="options", value=options)

    if not options.output_dir:
        raise ValidationError("Output directory is required", field="output_dir")

    if os.path.exists(options.output_dir) and not os.path.isdir(options.output_dir):
        raise ValidationError(
            f"Output directory {options.output_dir} exists and is not a directory",
            field="output_dir",
            value=options.output_dir
        )

    if options.format not in SUPPORTED_FORMATS:
        raise ValidationError(
            f"Unsupported format '{options.format}' (expected one of {', '.join(SUPPORTED_FORMATS)})",
            field="format",
            value=options.format
        )

    if options.quality is not None and not 1 <= options.quality <= 100:
        raise ValidationError("Quality must be between 1 and 100", field="quality", value=options.quality)

    if options.max_retries is not None and options.max_retries < 1:
        raise ValidationError("max_retries must be at least 1", field="max_retries", value=options.max_retries)


def validate_generation_request(needs: Sequence[Any], options: Any, concurrency: int) -> None:
    """
    Check a whole batch request before any work starts.

    Raises:
        ValidationError: If any need, the options or the concurrency is invalid
    """
    if isinstance(needs, (str, bytes)) or not isinstance(needs, Sequence):
        raise ValidationError("needs must be a list of AssetNeed", field="needs", value=needs)

    if not isinstance(concurrency, int) or isinstance(concurrency, bool) or concurrency < 1:
        raise ValidationError("Concurrency must be a positive integer", field="concurrency", value=concurrency)

    validate_generation_options(options)
    for index, need in enumerate(needs):
        validate_asset_need(need, index)
