"""
Base adapter interface for remote image generation services.

The pipeline only needs one capability from a service: turn a prompt (and
optionally some reference images) into image bytes. Retrying, backoff and
cost accounting live above this interface.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional

from genass.generation.models import GeneratedImage


class ImageGenerationAdapter(ABC):
    """
    Base adapter interface for image generation services.
    """

    @abstractmethod
    def generate_image(
        self,
        prompt: str,
        reference_images: Optional[List[GeneratedImage]] = None
    ) -> GeneratedImage:
        """
        Generate one image from a text prompt.

        This call is blocking; callers run it on a worker thread.

        Args:
            prompt (str): Full request text
            reference_images (List[GeneratedImage], optional): Images the
                service should use as references, in order

        Returns:
            GeneratedImage: Raw image bytes and their MIME type

        Raises:
            APIError: If the service call fails or returns no image
        """
        pass

    @abstractmethod
    def get_service_info(self) -> Dict[str, Any]:
        """
        Get information about the image generation service.

        Returns:
            Dict[str, Any]: Service name, model and capabilities
        """
        pass
