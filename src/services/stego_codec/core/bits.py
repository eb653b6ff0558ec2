"""
Bit-level embedding and extraction over raw pixel data

Bits are written MSB-first into the least significant bit of R, then G,
then B of each pixel, in raster order. Alpha is never touched.
"""

import numpy as np
from PIL import Image


CHANNELS_PER_PIXEL = 3  # R, G, B


def as_carrier_array(image: Image.Image) -> np.ndarray:
    """Return a writable (height, width, 4) uint8 copy of the image in RGBA"""
    rgba = image if image.mode == "RGBA" else image.convert("RGBA")
    return np.array(rgba, dtype=np.uint8)


def capacity_bits(image: Image.Image) -> int:
    """Number of bits the carrier can hold at one bit per RGB channel"""
    w, h = image.size
    return w * h * CHANNELS_PER_PIXEL


def required_bits(frame: bytes) -> int:
    return len(frame) * 8


def frame_to_bits(frame: bytes) -> np.ndarray:
    """
    Expand frame bytes into one bit per element, MSB first

    Args:
        frame: Frame bytes including the NUL terminator

    Returns:
        uint8 array of 0/1 values with length 8 * len(frame)
    """
    return np.unpackbits(np.frombuffer(frame, dtype=np.uint8))


def embed(image: Image.Image, frame: bytes) -> Image.Image:
    """
    Embed frame bits into the carrier's RGB low bits

    Bits that do not fit are dropped; callers validate capacity first.

    Args:
        image: Carrier image
        frame: Frame bytes to hide

    Returns:
        New RGBA image; the input image is left unchanged
    """
    arr = as_carrier_array(image)
    h, w, _ = arr.shape

    bits = frame_to_bits(frame)
    rgb = arr[:, :, :CHANNELS_PER_PIXEL].reshape(-1)  # copy, raster order R,G,B,R,G,B...
    n = min(bits.shape[0], rgb.shape[0])
    rgb[:n] = (rgb[:n] & 0xFE) | bits[:n]
    arr[:, :, :CHANNELS_PER_PIXEL] = rgb.reshape(h, w, CHANNELS_PER_PIXEL)

    return Image.fromarray(arr)


def extract(image: Image.Image) -> np.ndarray:
    """
    Read the low bit of R, G and B of every pixel in raster order

    Args:
        image: Carrier image

    Returns:
        uint8 array of 0/1 values with length 3 * width * height
    """
    arr = as_carrier_array(image)
    return arr[:, :, :CHANNELS_PER_PIXEL].reshape(-1) & 0x01


def bits_to_bytes(bits: np.ndarray) -> bytes:
    """
    Group bits into bytes and stop at the NUL terminator

    A trailing group shorter than 8 bits is discarded. The terminator is
    not included in the result.
    """
    usable = (len(bits) // 8) * 8
    if usable == 0:
        return b""
    data = np.packbits(np.asarray(bits[:usable], dtype=np.uint8)).tobytes()
    end = data.find(b"\x00")
    return data if end < 0 else data[:end]
