# Stego Vault test configuration
# Shared fixtures for building carrier and nested images

from io import BytesIO

import numpy as np
import pytest
from PIL import Image


TEST_SCRYPT_COST = 2**10


@pytest.fixture(autouse=True)
def fast_scrypt(monkeypatch):
    """Keep key derivation cheap in tests."""
    monkeypatch.setenv("STEGO_SCRYPT_COST", str(TEST_SCRYPT_COST))


def png_bytes(image, fmt="PNG"):
    buf = BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


def noisy_rgba(width, height, seed=7):
    """RGBA image with random colour and alpha values."""
    rng = np.random.default_rng(seed)
    arr = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    return Image.fromarray(arr)


@pytest.fixture
def carrier_image():
    """64x64 RGBA carrier with random pixels."""
    return noisy_rgba(64, 64)


@pytest.fixture
def carrier_png(carrier_image):
    return png_bytes(carrier_image)


@pytest.fixture
def blank_carrier_png():
    """Opaque carrier whose RGB low bits are all zero."""
    return png_bytes(Image.new("RGBA", (32, 32), (200, 100, 50, 255)))


@pytest.fixture
def nested_image():
    """2x2 solid-colour image to hide inside a carrier."""
    return Image.new("RGB", (2, 2), (10, 200, 30))


@pytest.fixture
def nested_png(nested_image):
    return png_bytes(nested_image)
