"""
Validation utilities for codec operations
"""

from typing import List, Optional, Sequence

from ..core.errors import BatchShapeError, CapacityExceededError, MissingKeyError
from ..models.codec_models import CarrierSlot


def validate_keys(slots: Sequence[CarrierSlot]) -> None:
    """
    Validate that every carrier with content has a key

    Args:
        slots: Encode-side carrier slots

    Raises:
        MissingKeyError: For the first slot with content and no key
    """
    for slot in slots:
        if slot.has_content() and not slot.key:
            raise MissingKeyError(
                f"Please assign an encryption key to Image {slot.index + 1}",
                carrier_index=slot.index,
            )


def validate_payload_fits(payload_bits: int, available_bits: int, carrier_index: Optional[int] = None) -> None:
    """
    Validate that payload fits in available capacity

    Args:
        payload_bits: Required bits for payload
        available_bits: Available bits in image

    Raises:
        CapacityExceededError: If payload doesn't fit
    """
    if payload_bits > available_bits:
        raise CapacityExceededError(payload_bits, available_bits, carrier_index)


def validate_batch_size(count: int, max_carriers: int) -> None:
    if count == 0:
        raise BatchShapeError("Please upload at least one image")
    if count > max_carriers:
        raise BatchShapeError(f"You can only select a maximum of {max_carriers} files")


def validate_positional(values: Sequence, count: int, label: str) -> None:
    """Each per-carrier list must have exactly one entry per carrier"""
    if len(values) != count:
        raise BatchShapeError(f"Expected {count} {label}, got {len(values)}")


def validate_hidden_targets(targets: List[int], hidden_count: int, carrier_count: int) -> None:
    """
    Validate the carrier assignment of nested images

    Raises:
        BatchShapeError: If a hidden image has no carrier, points outside the
            batch, or two hidden images share a carrier
    """
    if len(targets) != hidden_count:
        raise BatchShapeError("Please select an image for each hidden file")
    seen = set()
    for target in targets:
        if target < 0 or target >= carrier_count:
            raise BatchShapeError(f"Hidden file target {target} is not a carrier index")
        if target in seen:
            raise BatchShapeError(f"Image {target + 1} already holds a hidden file")
        seen.add(target)
