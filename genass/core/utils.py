"""
Common utility functions for the GenAss package.

This module provides utility functions used across the GenAss package:
- File and directory operations, including atomic writes
- Filename slugs and MIME type lookup
- Aspect ratio parsing
"""

import os
import re
import mimetypes
import tempfile
from typing import Optional

IMAGE_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "gif": "image/gif",
}

def ensure_dir(path: str) -> str:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path (str): Directory path

    Returns:
        str: The directory path
    """
    os.makedirs(path, exist_ok=True)
    return path

def write_atomic(file_path: str, data: bytes) -> None:
    """
    Write data to a temp file in the target directory, then rename it over
    file_path so readers never observe a partial file.

    Args:
        file_path (str): Destination file
        data (bytes): File content
    """
    directory = os.path.dirname(file_path) or "."
    fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".genass-", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(temp_path, file_path)
    except OSError:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise

def get_file_extension(file_path: str) -> str:
    """
    Get the file extension from a file path.

    Args:
        file_path (str): File path

    Returns:
        str: File extension without the dot
    """
    return os.path.splitext(file_path)[1][1:].lower()

def is_valid_image_file(file_path: str) -> bool:
    """
    Check if a file is an image file, judging by its extension.

    Args:
        file_path (str): Path to image file

    Returns:
        bool: True if file exists and has an image extension, False otherwise
    """
    if not os.path.isfile(file_path):
        return False

    valid_extensions = ['jpg', 'jpeg', 'png', 'gif', 'bmp', 'tiff', 'webp']
    extension = get_file_extension(file_path)

    return extension in valid_extensions

def guess_image_mime_type(file_path: str, default: str = "image/png") -> str:
    """
    Guess the MIME type of an image from its file extension.

    Args:
        file_path (str): Path to image file
        default (str): MIME type to use when the extension is unknown

    Returns:
        str: MIME type
    """
    extension = get_file_extension(file_path)
    if extension in IMAGE_MIME_TYPES:
        return IMAGE_MIME_TYPES[extension]

    guessed, _ = mimetypes.guess_type(file_path)
    if guessed and guessed.startswith("image/"):
        return guessed
    return default

def slugify(text: str, max_length: int = 40) -> str:
    """
    Turn free text into a filename-safe slug.

    The slug is lowercase, contains only letters, digits and hyphens, and is
    truncated to max_length characters.

    Args:
        text (str): Original text
        max_length (int): Maximum slug length

    Returns:
        str: Slug
    """
    slug = text.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"[\s-]+", "-", slug).strip("-")
    return slug[:max_length].strip("-")

def parse_aspect_ratio(aspect_ratio: Optional[str]) -> Optional[float]:
    """
    Parse an aspect ratio string into a width/height ratio.

    Args:
        aspect_ratio (str): Aspect ratio string (e.g., "16:9", "1:1", "16_9")

    Returns:
        Optional[float]: The ratio, or None if the string cannot be parsed
    """
    if not aspect_ratio:
        return None

    parts = re.split(r"[:_x/]", aspect_ratio.strip())
    if len(parts) != 2:
        return None

    try:
        width, height = float(parts[0]), float(parts[1])
    except ValueError:
        return None

    if width <= 0 or height <= 0:
        return None

    return width / height
