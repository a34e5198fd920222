"""
Error handling module.

This module provides the exception types used across the generation pipeline,
the rate-limit classifier used by the retry policy, and helpers for issuing
API requests with consistent error reporting.

Error taxonomy:
- APIError: a remote call failed (network, HTTP status, malformed response)
- GenerationError: every retry for one generation was exhausted
- GenerationCancelled: a cancellation token was triggered during a wait
- ValidationError: an input violates the pipeline contract (raised up front)
- ConfigurationError: the pipeline is not configured well enough to run
"""

import json
import logging
from typing import Dict, Any, Optional, Callable, List

import requests

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS_CODES = (429,)
RATE_LIMIT_MARKERS = (
    "rate limit",
    "quota exceeded",
    "too many requests",
    "resource exhausted",
)

class APIError(Exception):
    """
    Exception raised for API errors.

    Attributes:
        message: Error message.
        status_code: HTTP status code.
        response: API response.
        endpoint: API endpoint.
        request_data: Request data.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[Any] = None,
        endpoint: Optional[str] = None,
        request_data: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.response = response
        self.endpoint = endpoint
        self.request_data = request_data

        detailed_message = f"API Error: {message}"
        if status_code:
            detailed_message += f" (Status Code: {status_code})"
        if endpoint:
            detailed_message += f" (Endpoint: {endpoint})"

        super().__init__(detailed_message)


class GenerationError(Exception):
    """
    Exception raised when all generation attempts for one image failed.

    Attributes:
        message: Error message.
        last_error: The underlying cause of the final failed attempt.
        attempts: Number of attempts performed.
    """

    def __init__(
        self,
        message: str,
        last_error: Optional[BaseException] = None,
        attempts: int = 0
    ):
        self.message = message
        self.last_error = last_error
        self.attempts = attempts

        detailed_message = message
        if last_error is not None:
            detailed_message += f": {last_error}"

        super().__init__(detailed_message)


class GenerationCancelled(Exception):
    """
    Exception raised when a cancellation request interrupts generation.
    """

    def __init__(self, message: str = "Generation cancelled"):
        self.message = message
        super().__init__(message)


class ValidationError(Exception):
    """
    Exception raised for validation errors.

    Attributes:
        message: Error message.
        field: Field that failed validation.
        value: Value that failed validation.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None
    ):
        self.message = message
        self.field = field
        self.value = value

        detailed_message = f"Validation Error: {message}"
        if field:
            detailed_message += f" (Field: {field})"

        super().__init__(detailed_message)


class ConfigurationError(Exception):
    """
    Exception raised for configuration errors.

    Attributes:
        message: Error message.
        component: Component that has a configuration error.
        missing_keys: Keys that are missing from the configuration.
    """

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        missing_keys: Optional[List[str]] = None
    ):
        self.message = message
        self.component = component
        self.missing_keys = missing_keys or []

        detailed_message = f"Configuration Error: {message}"
        if component:
            detailed_message += f" (Component: {component})"
        if missing_keys:
            detailed_message += f" (Missing Keys: {', '.join(missing_keys)})"

        super().__init__(detailed_message)


def _status_of(error: BaseException) -> Optional[int]:
    """Pull an HTTP-like status code off an exception, wherever it keeps one."""
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.isdigit():
            return int(value)

    response = getattr(error, "response", None)
    if response is not None:
        value = getattr(response, "status_code", None) or getattr(response, "status", None)
        if isinstance(value, int):
            return value

    return None


def is_rate_limit_error(error: BaseException) -> bool:
    """
    Check whether an error signals that the remote service is rate limiting us.

    Rate limiting is detected from an explicit 429 status/code or from the
    service's error wording ("rate limit", "quota exceeded", "too many
    requests", "resource exhausted").

    Args:
        error: The exception raised by a generation attempt.

    Returns:
        True if the error is rate-limit related, False otherwise.
    """
    if _status_of(error) in RATE_LIMIT_STATUS_CODES:
        return True

    code = getattr(error, "code", None)
    if isinstance(code, str) and code.upper() in ("RESOURCE_EXHAUSTED", "RATE_LIMITED"):
        return True

    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def handle_api_request(
    request_func: Callable,
    endpoint: str,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    error_message: str = "API request failed",
    timeout: Optional[float] = None
) -> Dict[str, Any]:
    """
    Handle an API request with error handling.

    Args:
        request_func: Function to make the API request (e.g. requests.post).
        endpoint: API endpoint.
        payload: Request payload.
        headers: Request headers.
        error_message: Error message to use if the request fails.
        timeout: Request timeout in seconds.

    Returns:
        Parsed JSON response.

    Raises:
        APIError: If the API request fails or the response is not JSON.
    """
    response = None
    try:
        response = request_func(
            endpoint,
            json=payload,
            headers=headers,
            timeout=timeout
        )
        response.raise_for_status()
        return response.json()

    except requests.exceptions.HTTPError as e:
        if getattr(e, "response", None) is not None:
            status_code = e.response.status_code
            response_text = e.response.text
        else:
            status_code = getattr(response, "status_code", None)
            response_text = getattr(response, "text", str(e))

        logger.error(f"HTTP error: {e}")
        logger.debug(f"Response: {response_text}")

        raise APIError(
            message=f"{error_message}: {e}",
            status_code=status_code,
            response=response_text,
            endpoint=endpoint,
            request_data=payload
        ) from e

    except requests.exceptions.ConnectionError as e:
        logger.error(f"Connection error: {e}")
        raise APIError(
            message=f"{error_message}: Connection error",
            endpoint=endpoint,
            request_data=payload
        ) from e

    except requests.exceptions.Timeout as e:
        logger.error(f"Timeout error: {e}")
        raise APIError(
            message=f"{error_message}: Request timed out",
            endpoint=endpoint,
            request_data=payload
        ) from e

    except requests.exceptions.RequestException as e:
        logger.error(f"Request error: {e}")
        raise APIError(
            message=f"{error_message}: {e}",
            endpoint=endpoint,
            request_data=payload
        ) from e

    except (json.JSONDecodeError, ValueError) as e:
        logger.error(f"Failed to parse API response: {e}")
        raise APIError(
            message=f"Failed to parse API response: {e}",
            status_code=getattr(response, "status_code", None),
            response=getattr(response, "text", None),
            endpoint=endpoint,
            request_data=payload
        ) from e


def log_api_error(error: APIError) -> None:
    """
    Log an API error with detailed information.

    Args:
        error: API error to log.
    """
    logger.error(f"API Error: {error.message}")

    if error.status_code:
        logger.error(f"Status Code: {error.status_code}")

    if error.endpoint:
        logger.error(f"Endpoint: {error.endpoint}")

    if error.request_data:
        safe_request_data = error.request_data.copy()

        for key in safe_request_data:
            if "key" in key.lower() or "token" in key.lower() or "secret" in key.lower() or "password" in key.lower():
                safe_request_data[key] = "***REDACTED***"

        # Message bodies carry prompts and base64 images; keep the log readable
        if "messages" in safe_request_data:
            safe_request_data["messages"] = "<omitted>"

        logger.error(f"Request Data: {safe_request_data}")
