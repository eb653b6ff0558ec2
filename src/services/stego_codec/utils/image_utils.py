"""
Image utility functions for codec operations
"""

import base64
import re
import httpx
from io import BytesIO
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError

from ..core.errors import InvalidImageError


# Formats that re-encode pixels lossily, so hidden low bits do not survive a save
LOSSY_FORMATS = {"JPEG", "MPO", "WEBP"}

NESTED_IMAGE_MIME = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "MPO": "image/jpeg",
}

DATA_URL_PATTERN = re.compile(r"^data:image/(png|jpeg|jpg);base64,([A-Za-z0-9+/=]+)$")


def load_image_from_input(
    file: Optional[BytesIO] = None,
    url: Optional[str] = None,
    data: Optional[bytes] = None,
) -> Image.Image:
    """
    Load an image from a file object, raw bytes or a URL

    Args:
        file: BytesIO object containing image data
        url: URL to fetch image from
        data: Raw encoded image bytes

    Returns:
        PIL Image object with its pixel data loaded

    Raises:
        InvalidImageError: If the content is not a readable image
        ValueError: If no source is provided
    """
    if data is not None:
        file = BytesIO(data)
    if file is None and url is not None:
        with httpx.Client(timeout=30) as client:
            resp = client.get(url)
            resp.raise_for_status()
            file = BytesIO(resp.content)
    if file is None:
        raise ValueError("Provide file, data or url")

    try:
        image = Image.open(file)
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        raise InvalidImageError(f"Could not decode image: {exc}") from exc
    return image


def is_lossy(image: Image.Image) -> bool:
    return (image.format or "").upper() in LOSSY_FORMATS


def image_to_png_bytes(image: Image.Image) -> bytes:
    buf = BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def to_data_url(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def nested_image_data_url(data: bytes) -> Tuple[str, int, int]:
    """
    Turn nested image bytes into a data URL and report its size

    Args:
        data: Encoded PNG or JPEG bytes

    Returns:
        Tuple of (data_url, width, height)

    Raises:
        InvalidImageError: If the bytes are not a PNG or JPEG image
    """
    image = load_image_from_input(data=data)
    fmt = (image.format or "").upper()
    mime = NESTED_IMAGE_MIME.get(fmt)
    if mime is None:
        raise InvalidImageError(f"Unsupported nested image format: {image.format}")
    width, height = image.size
    return to_data_url(data, mime), width, height


def parse_data_url(data_url: str) -> Optional[bytes]:
    """Return the decoded bytes of an image data URL, or None if it does not match"""
    match = DATA_URL_PATTERN.match(data_url)
    if match is None:
        return None
    try:
        return base64.b64decode(match.group(2), validate=True)
    except ValueError:
        return None


def probe_dimensions(data: bytes) -> Tuple[int, int]:
    """Decode image bytes and return (width, height)"""
    return load_image_from_input(data=data).size
