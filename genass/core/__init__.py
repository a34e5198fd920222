"""
Core utilities and configuration for the GenAss package.
"""

from genass.core.config import get_config, get_config_value
from genass.core.credentials import get_api_key
from genass.core.logging_config import get_logger, configure_logging
from genass.core.utils import is_valid_image_file, slugify
from genass.core.error_handler import (
    APIError,
    ValidationError,
    ConfigurationError,
    GenerationError,
    GenerationCancelled,
)
