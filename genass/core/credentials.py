"""
Credential management for API keys.

This module provides functions for loading API credentials:
- Loading credentials from environment variables (and a .env file)
- Failing fast with setup instructions when a required key is missing
"""

import os
from typing import Optional

from dotenv import load_dotenv

from genass.core.error_handler import ConfigurationError
from genass.core.logging_config import get_logger

# Initialize logger
logger = get_logger(__name__)

# Load environment variables from .env file if it exists
load_dotenv()

# Map API names to environment variable names
ENV_VAR_MAP = {
    "openrouter": "OPENROUTER_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

def get_credential(key: str, required: bool = True) -> Optional[str]:
    """
    Get a credential from environment variables.

    Args:
        key (str): Environment variable name
        required (bool): Whether the credential is required

    Returns:
        Optional[str]: The credential value or None if not required and not found

    Raises:
        ConfigurationError: If the credential is required but not set
    """
    value = os.environ.get(key, "").strip()

    if not value:
        if required:
            raise ConfigurationError(
                f"{key} environment variable is required but not set. "
                f"Export it in your shell (export {key}=your_api_key_here) "
                f"or add it to a .env file in the working directory.",
                component="credentials",
                missing_keys=[key]
            )
        return None

    return value

def get_api_key(api_name: str) -> str:
    """
    Get API key for a specific API.

    Args:
        api_name (str): API name (e.g., 'openrouter', 'gemini')

    Returns:
        str: API key

    Raises:
        ValueError: If the API name is unknown
        ConfigurationError: If the API key is not set
    """
    env_var = ENV_VAR_MAP.get(api_name.lower())
    if not env_var:
        raise ValueError(f"Unknown API: {api_name}")

    value = get_credential(env_var)
    logger.debug(f"Loaded credential for {api_name} from {env_var}")
    return value
