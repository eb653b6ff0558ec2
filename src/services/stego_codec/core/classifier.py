"""
Classification of decrypted segments and assembly of the decoded result
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..models.codec_models import SegmentKind
from ..utils.image_utils import parse_data_url, probe_dimensions
from . import cipher
from .errors import InvalidImageError, MultipleImagesError, NoHiddenDataError, WrongKeyError


logger = logging.getLogger(__name__)


@dataclass
class ClassifiedSegment:
    kind: SegmentKind
    text: Optional[str] = None
    data_url: Optional[str] = None
    image_bytes: Optional[bytes] = None
    size: Optional[Tuple[int, int]] = None


@dataclass
class DecodedPayload:
    text: str = ""
    image: Optional[str] = None
    width: int = 0
    height: int = 0
    failed_segments: int = 0
    warnings: List[str] = field(default_factory=list)


def _parse_size(body: str) -> Optional[Tuple[int, int]]:
    width, sep, height = body.partition("x")
    if not sep or not width.isdigit() or not height.isdigit():
        return None
    return int(width), int(height)


def classify(plaintext: bytes) -> ClassifiedSegment:
    """
    Classify a decrypted segment by its type byte

    Args:
        plaintext: Decrypted segment (type byte + body)

    Returns:
        ClassifiedSegment; unknown or empty segments classify as empty

    Raises:
        InvalidImageError: If an image segment is not a PNG/JPEG data URL
    """
    if not plaintext:
        return ClassifiedSegment(SegmentKind.empty)

    tag, body = plaintext[0], plaintext[1:]

    if tag == SegmentKind.text.value:
        return ClassifiedSegment(SegmentKind.text, text=body.decode("utf-8", errors="replace"))

    if tag == SegmentKind.image.value:
        data_url = body.decode("ascii", errors="replace")
        image_bytes = parse_data_url(data_url)
        if image_bytes is None:
            raise InvalidImageError("Hidden image segment is not a base64 image data URL")
        return ClassifiedSegment(SegmentKind.image, data_url=data_url, image_bytes=image_bytes)

    if tag == SegmentKind.dimensions.value:
        size = _parse_size(body.decode("ascii", errors="replace"))
        if size is None:
            return ClassifiedSegment(SegmentKind.empty)
        return ClassifiedSegment(SegmentKind.dimensions, size=size)

    return ClassifiedSegment(SegmentKind.empty)


def assemble(tokens: Sequence[str], key: str, cost: Optional[int] = None) -> DecodedPayload:
    """
    Decrypt and classify every token of a frame

    Args:
        tokens: Segment tokens from split_frame()
        key: Carrier password
        cost: Optional Scrypt cost override

    Returns:
        DecodedPayload with the joined text and the nested image, if any

    Raises:
        NoHiddenDataError: If the frame is empty or holds nothing usable
        WrongKeyError: If nothing was recovered and a segment failed to decrypt
        MultipleImagesError: If more than one image segment decrypted
    """
    if not tokens:
        raise NoHiddenDataError("No hidden data found")

    result = DecodedPayload()
    texts: List[str] = []
    images: List[ClassifiedSegment] = []
    recorded_size: Optional[Tuple[int, int]] = None

    for token in tokens:
        plaintext, ok = cipher.decrypt(token, key, cost)
        if not ok:
            result.failed_segments += 1
            continue
        try:
            segment = classify(plaintext)
        except InvalidImageError as exc:
            logger.warning("Ignoring segment: %s", exc)
            result.warnings.append(str(exc))
            continue

        if segment.kind == SegmentKind.text and segment.text:
            texts.append(segment.text)
        elif segment.kind == SegmentKind.image:
            images.append(segment)
        elif segment.kind == SegmentKind.dimensions:
            recorded_size = segment.size

    if len(images) > 1:
        raise MultipleImagesError(f"Frame holds {len(images)} hidden images, expected at most one")

    if images:
        image = images[0]
        try:
            width, height = probe_dimensions(image.image_bytes)
        except InvalidImageError as exc:
            logger.warning("Hidden image could not be decoded: %s", exc)
            result.warnings.append(str(exc))
        else:
            if recorded_size is not None and recorded_size != (width, height):
                logger.warning(
                    "Recorded hidden image size %sx%s differs from decoded %sx%s",
                    recorded_size[0], recorded_size[1], width, height,
                )
            result.image = image.data_url
            result.width, result.height = width, height

    result.text = " ".join(texts).strip()

    if not result.text and result.image is None:
        if result.failed_segments:
            raise WrongKeyError("Wrong key")
        raise NoHiddenDataError("No hidden data found")

    if result.failed_segments:
        logger.warning("%d segment(s) failed to decrypt", result.failed_segments)

    return result
