"""
Error types raised by the steganographic payload codec

All errors derive from ValueError so callers that already treat
ValueError as a client error (HTTP 4xx) keep working.
"""

from typing import Optional


class StegoError(ValueError):
    """Base class for codec errors"""

    code = "stego_error"

    def __init__(self, message: str, carrier_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.carrier_index = carrier_index


class MissingKeyError(StegoError):
    """A carrier with content has no key assigned"""

    code = "missing_key"


class EmptyKeyError(MissingKeyError):
    """The cipher was called with an empty key"""

    code = "empty_key"


class InvalidImageError(StegoError):
    """A carrier or nested image could not be decoded"""

    code = "invalid_image"


class WrongKeyError(StegoError):
    """Every segment of a frame failed authenticated decryption"""

    code = "wrong_key"


class CapacityExceededError(StegoError):
    """The frame needs more bits than the carrier offers"""

    code = "capacity_exceeded"

    def __init__(self, required_bits: int, available_bits: int, carrier_index: Optional[int] = None):
        super().__init__(
            f"Not enough capacity for payload: {required_bits} > {available_bits} bits",
            carrier_index,
        )
        self.required_bits = required_bits
        self.available_bits = available_bits


class NoHiddenDataError(StegoError):
    """The carrier holds no decodable frame"""

    code = "no_hidden_data"


class MultipleImagesError(StegoError):
    """A frame holds more than one nested image segment"""

    code = "multiple_images"


class BatchShapeError(StegoError):
    """Batch inputs do not line up (keys, texts, hidden image targets)"""

    code = "batch_shape"
