"""
Frame construction and splitting

A frame is every encrypted segment of one carrier joined by the delimiter
and closed by a NUL byte:

    token(TEXT) || token(IMAGE) || token(DIMENSIONS) \\x00

Each segment plaintext starts with a type byte (see SegmentKind).
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..models.codec_models import SegmentKind
from ..utils.image_utils import nested_image_data_url
from . import cipher
from .errors import InvalidImageError, MissingKeyError


logger = logging.getLogger(__name__)

DELIMITER = b"||"
TERMINATOR = b"\x00"


@dataclass
class FrameBuild:
    frame: bytes
    segment_kinds: List[SegmentKind] = field(default_factory=list)
    image_size: Optional[Tuple[int, int]] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.segment_kinds

    @property
    def has_image(self) -> bool:
        return SegmentKind.image in self.segment_kinds


def tag_segment(kind: SegmentKind, body: bytes) -> bytes:
    return bytes([kind.value]) + body


def build_frame(
    text: Optional[str],
    image: Optional[bytes],
    key: Optional[str],
    cost: Optional[int] = None,
) -> FrameBuild:
    """
    Encrypt the payloads of one carrier and frame them

    Args:
        text: Optional text payload; empty text counts as absent
        image: Optional nested image (encoded PNG or JPEG bytes)
        key: Carrier password
        cost: Optional Scrypt cost override

    Returns:
        FrameBuild with the NUL-terminated frame bytes

    Raises:
        MissingKeyError: If a payload is present and key is empty
    """
    if (text or image is not None) and not key:
        raise MissingKeyError("Encryption key is required")

    build = FrameBuild(frame=b"")
    plaintexts: List[Tuple[SegmentKind, bytes]] = []

    if text:
        plaintexts.append((SegmentKind.text, text.encode("utf-8")))

    if image is not None:
        try:
            data_url, width, height = nested_image_data_url(image)
        except InvalidImageError as exc:
            logger.warning("Dropping nested image: %s", exc)
            build.warnings.append(f"Hidden image dropped: {exc}")
        else:
            plaintexts.append((SegmentKind.image, data_url.encode("ascii")))
            plaintexts.append((SegmentKind.dimensions, f"{width}x{height}".encode("ascii")))
            build.image_size = (width, height)

    tokens = []
    for kind, body in plaintexts:
        tokens.append(cipher.encrypt(tag_segment(kind, body), key, cost).encode("ascii"))
        build.segment_kinds.append(kind)

    build.frame = DELIMITER.join(tokens) + TERMINATOR
    return build


def split_frame(frame_bytes: bytes) -> List[str]:
    """
    Split unpacked frame bytes into segment tokens

    Args:
        frame_bytes: Bytes read from the carrier, with or without the NUL

    Returns:
        List of tokens; empty when the carrier holds no data
    """
    end = frame_bytes.find(TERMINATOR)
    if end >= 0:
        frame_bytes = frame_bytes[:end]
    if not frame_bytes:
        return []
    # latin-1 maps every byte, so random LSB noise never raises here
    return frame_bytes.decode("latin-1").split(DELIMITER.decode("ascii"))
