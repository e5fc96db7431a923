"""Helpers for artwork stored inline on records."""

import base64
import io
from pathlib import Path

from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from vinylvault.core.errors import ValidationError

DATA_URL_PREFIX = "data:"


def is_data_url(cover_url: str | None) -> bool:
    """Check whether a cover is embedded inline rather than linked."""
    return bool(cover_url) and cover_url.startswith(DATA_URL_PREFIX)


def encode_image(image_data: bytes) -> str:
    """Encode image bytes as a base64 data URL.

    Args:
        image_data: Raw image file contents

    Returns:
        ``data:<mime>;base64,...`` URL

    Raises:
        ValidationError: If the bytes are not an image Pillow can read
    """
    try:
        with PILImage.open(io.BytesIO(image_data)) as img:
            img.verify()
            mime_type = PILImage.MIME.get(img.format or "", "image/jpeg")
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ValidationError("The cover file is not a readable image.") from e

    encoded = base64.b64encode(image_data).decode("ascii")
    return f"{DATA_URL_PREFIX}{mime_type};base64,{encoded}"


def encode_image_file(path: Path | str) -> str:
    """Read an image file and encode it as a data URL.

    Args:
        path: Path to the image

    Returns:
        Data URL suitable for ``cover_url``
    """
    try:
        image_data = Path(path).read_bytes()
    except OSError as e:
        raise ValidationError(f"Could not read cover file {path}.") from e
    return encode_image(image_data)


def decode_data_url(cover_url: str) -> tuple[str, bytes]:
    """Split an inline cover into its MIME type and raw bytes.

    Args:
        cover_url: ``data:`` URL

    Returns:
        Tuple of (mime type, image bytes)

    Raises:
        ValueError: If the URL is not a base64 data URL
    """
    if not is_data_url(cover_url) or ";base64," not in cover_url:
        raise ValueError("Not a base64 data URL")
    header, payload = cover_url[len(DATA_URL_PREFIX) :].split(";base64,", 1)
    return header or "application/octet-stream", base64.b64decode(payload)
