"""
Adapters for remote image generation services.
"""

from genass.generation.adapters.base import ImageGenerationAdapter
from genass.generation.adapters.openrouter_adapter import OpenRouterImageAdapter
