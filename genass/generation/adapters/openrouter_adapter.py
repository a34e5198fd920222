"""
Image generation through OpenRouter.ai.

This module implements the ImageGenerationAdapter on top of the OpenRouter
chat completions endpoint, which exposes Google Gemini 2.5 Flash Image (and
other image models) behind an OpenAI-style API. Reference images are sent as
base64 data URLs ahead of the text part; the generated image comes back in
``choices[].message.images[].image_url.url`` either as a data URL or as a
downloadable URL.
"""

import base64
import json
import logging
import re
from typing import Dict, Any, List, Optional

import requests

from genass.core.config import get_config_value
from genass.core.constants import (
    DEFAULT_IMAGE_MODEL,
    OPENROUTER_API_ENDPOINT,
    DEFAULT_REQUEST_TIMEOUT,
)
from genass.core.credentials import get_api_key
from genass.core.error_handler import APIError, handle_api_request
from genass.core.logging_config import get_logger
from genass.generation.adapters.base import ImageGenerationAdapter
from genass.generation.models import GeneratedImage

# Initialize logger
logger = get_logger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>image/[\w.+-]+)?(;base64)?,(?P<data>.*)$", re.DOTALL)


class OpenRouterImageAdapter(ImageGenerationAdapter):
    """
    Adapter for image generation models served by OpenRouter.ai.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_IMAGE_MODEL,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize the adapter.

        Args:
            api_key (str, optional): OpenRouter API key. Read from
                OPENROUTER_API_KEY when not provided.
            model (str, optional): Model to use.
            api_base (str, optional): API base URL. Defaults to the configured
                OpenRouter endpoint.
            timeout (float, optional): Request timeout in seconds.

        Raises:
            ConfigurationError: If no API key is available.
        """
        self.api_key = api_key or get_api_key("openrouter")
        self.model = model
        self.api_base = api_base or get_config_value("api.openrouter.api_base", OPENROUTER_API_ENDPOINT)
        self.timeout = timeout or get_config_value("api.openrouter.timeout", DEFAULT_REQUEST_TIMEOUT)
        self.endpoint = f"{self.api_base}/chat/completions"

        logger.info(f"Initialized {self.__class__.__name__} with model {self.model}")

    def generate_image(
        self,
        prompt: str,
        reference_images: Optional[List[GeneratedImage]] = None
    ) -> GeneratedImage:
        """
        Generate one image using the configured model.

        Args:
            prompt (str): Full request text
            reference_images (List[GeneratedImage], optional): Reference images

        Returns:
            GeneratedImage: The first image found in the response

        Raises:
            APIError: If the request fails or the response has no image
        """
        reference_images = reference_images or []
        logger.info(f"Generating image with prompt: {prompt[:50]}...")
        logger.debug(f"Generating image with full prompt: {prompt}")

        payload = self._build_payload(prompt, reference_images)
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Request payload (truncated): {json.dumps(truncate_for_logging(payload))}")

        result = handle_api_request(
            requests.post,
            self.endpoint,
            payload,
            headers,
            error_message="Image generation request failed",
            timeout=self.timeout
        )

        logger.info(f"Response received with {len(result.get('choices', []))} choices")
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Response details (truncated): {json.dumps(truncate_for_logging(result))}")

        image_url = self._extract_image_url(result)
        if not image_url:
            if "error" in result:
                raise APIError(
                    f"Service returned an error: {json.dumps(result['error'])}",
                    status_code=_error_code(result["error"]),
                    response=result,
                    endpoint=self.endpoint
                )
            raise APIError("No image data in response", response=truncate_for_logging(result), endpoint=self.endpoint)

        return self._load_image(image_url)

    def get_service_info(self) -> Dict[str, Any]:
        return {
            "name": "OpenRouter",
            "model": self.model,
            "endpoint": self.endpoint,
            "capabilities": ["text-to-image", "reference-images"],
        }

    def _build_payload(self, prompt: str, reference_images: List[GeneratedImage]) -> Dict[str, Any]:
        content = []
        for image in reference_images:
            encoded = base64.b64encode(image.data).decode("ascii")
            content.append({
                "type": "image_url",
                "image_url": {"url": f"data:{image.mime_type};base64,{encoded}"}
            })
        content.append({"type": "text", "text": prompt})

        return {
            "model": self.model,
            "messages": [{"role": "user", "content": content}],
            "modalities": ["image", "text"],
        }

    def _extract_image_url(self, result: Dict[str, Any]) -> Optional[str]:
        """
        Find the first image URL in a chat completions response.

        Args:
            result (Dict[str, Any]): Parsed response

        Returns:
            Optional[str]: Data URL or downloadable URL, None if absent
        """
        for choice in result.get("choices") or []:
            message = choice.get("message") or {}

            for image in message.get("images") or []:
                url = (image.get("image_url") or {}).get("url") if isinstance(image, dict) else None
                if url:
                    return url

            content = message.get("content")
            if isinstance(content, list):
                for part in content:
                    if isinstance(part, dict) and "image_url" in part:
                        url = (part["image_url"] or {}).get("url")
                        if url:
                            return url

        return None

    def _load_image(self, image_url: str) -> GeneratedImage:
        match = DATA_URL_PATTERN.match(image_url)
        if match:
            logger.debug("Image returned as a base64 data URL")
            try:
                data = base64.b64decode(match.group("data"))
            except ValueError as e:
                raise APIError(f"Invalid base64 image data: {e}", endpoint=self.endpoint) from e
            return GeneratedImage(data=data, mime_type=match.group("mime") or "image/png")

        domain_match = re.match(r"(https?://[^/]+)", image_url)
        logger.debug(f"Downloading image from {domain_match.group(1) if domain_match else 'unknown host'}")
        try:
            response = requests.get(image_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise APIError(
                f"Failed to download generated image: {e}",
                status_code=getattr(getattr(e, "response", None), "status_code", None),
                endpoint=image_url
            ) from e

        mime_type = response.headers.get("Content-Type", "image/png").split(";")[0]
        return GeneratedImage(data=response.content, mime_type=mime_type)


def _error_code(error: Any) -> Optional[int]:
    if isinstance(error, dict):
        code = error.get("code")
        if isinstance(code, int):
            return code
    return None


def truncate_for_logging(data: Any, max_str_length: int = 100) -> Any:
    """
    Copy a request/response structure with base64 data and long strings cut.

    Args:
        data: Dict, list or primitive to truncate
        max_str_length (int): Longest string kept verbatim

    Returns:
        A truncated copy safe to log
    """
    if isinstance(data, dict):
        return {key: truncate_for_logging(value, max_str_length) for key, value in data.items()}
    if isinstance(data, list):
        return [truncate_for_logging(item, max_str_length) for item in data]
    if isinstance(data, str):
        if data.startswith("data:image"):
            return data.split(",", 1)[0] + ",<base64_data_truncated>"
        if len(data) > max_str_length:
            return data[:max_str_length] + "...<truncated>"
    return data
