"""
Constants for the GenAss package.

This module provides constants used throughout the GenAss package.
These constants can be easily changed in one place.
"""

# Image Generation Models
DEFAULT_IMAGE_MODEL = "google/gemini-2.5-flash-image"

# API Endpoints
OPENROUTER_API_ENDPOINT = "https://openrouter.ai/api/v1"
DEFAULT_REQUEST_TIMEOUT = 120  # seconds

# Asset types understood by the prompt composer
ASSET_TYPES = ["icon", "logo", "banner", "illustration", "background", "social-media", "ui-element"]
TRANSPARENT_ASSET_TYPES = ["icon", "logo"]
PRIORITIES = ["high", "medium", "low"]

# Output Formats
SUPPORTED_FORMATS = ["png", "jpg", "webp"]
DEFAULT_FORMAT = "png"
DEFAULT_QUALITY = {"png": 90, "jpg": 85, "webp": 85}
DEFAULT_OUTPUT_DIR = "generated-assets"

# Generation defaults
DEFAULT_COST_PER_GENERATION = 0.039
DEFAULT_QUALITY_MODE = "high"
DEFAULT_QUALITY_THRESHOLD = 0.7
DEFAULT_MAX_REGENERATION_ATTEMPTS = 2
DEFAULT_MAX_RETRIES = 3
DEFAULT_CONCURRENCY = 3
DEFAULT_NEGATIVE_PROMPT = (
    "blurry, low quality, pixelated, watermark, text overlay, signature, distorted, noisy, "
    "grainy, jpeg artifacts, oversaturated, amateur, ugly, deformed, messy, cluttered, inconsistent"
)

# Delays (seconds)
RATE_LIMIT_BACKOFF_BASE = 5.0
DEFAULT_BACKOFF_BASE = 2.0
MAX_BACKOFF_DELAY = 60.0
REGENERATION_DELAY = 2.0
BATCH_DELAY = 6.0

# Cost tracking
DEFAULT_MONTHLY_BUDGET = 10.0
