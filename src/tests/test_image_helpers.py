"""Tests for inline artwork encoding."""

import io

import pytest
from PIL import Image as PILImage

from vinylvault.core.errors import ValidationError
from vinylvault.core.utils.image_helpers import (
    decode_data_url,
    encode_image,
    encode_image_file,
    is_data_url,
)


@pytest.fixture
def png_bytes() -> bytes:
    image = PILImage.new("RGB", (4, 4), color=(200, 30, 30))
    output = io.BytesIO()
    image.save(output, format="PNG")
    return output.getvalue()


def test_encode_and_decode(png_bytes):
    """Test that an image becomes a data URL and back."""
    url = encode_image(png_bytes)

    assert url.startswith("data:image/png;base64,")
    assert is_data_url(url)
    assert decode_data_url(url) == ("image/png", png_bytes)


def test_encode_file(png_bytes, tmp_path):
    """Test encoding an image file from disk."""
    path = tmp_path / "cover.png"
    path.write_bytes(png_bytes)
    assert encode_image_file(path) == encode_image(png_bytes)


def test_not_an_image():
    """Test that arbitrary bytes are rejected."""
    with pytest.raises(ValidationError):
        encode_image(b"this is not an image")


def test_missing_file(tmp_path):
    """Test that an unreadable file is rejected."""
    with pytest.raises(ValidationError):
        encode_image_file(tmp_path / "missing.png")


def test_is_data_url():
    """Test telling inline covers from links."""
    assert not is_data_url(None)
    assert not is_data_url("")
    assert not is_data_url("https://img.example/cover.jpg")
    with pytest.raises(ValueError):
        decode_data_url("https://img.example/cover.jpg")
