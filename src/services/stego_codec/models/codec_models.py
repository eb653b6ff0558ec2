from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class SegmentKind(int, Enum):
    text = 1
    image = 2
    dimensions = 3
    empty = 0


class CarrierState(str, Enum):
    PENDING = "pending"
    EMBEDDING = "embedding"
    EXTRACTING = "extracting"
    DONE = "done"
    FAILED = "failed"


class DecodeStatus(str, Enum):
    DECODED = "decoded"
    NO_HIDDEN_DATA = "no_hidden_data"
    WRONG_KEY = "wrong_key"
    FAILED = "failed"


class CarrierSlot(BaseModel):
    """One carrier on the encode side together with what goes into it"""

    index: int = Field(ge=0, description="0-based position of the carrier in the batch")
    name: Optional[str] = None
    carrier: bytes
    text: Optional[str] = None
    hidden_image: Optional[bytes] = None
    key: Optional[str] = None

    def has_content(self) -> bool:
        return bool(self.text) or self.hidden_image is not None


class DecodeRequest(BaseModel):
    index: int = Field(ge=0)
    name: Optional[str] = None
    carrier: bytes
    key: Optional[str] = None


class CapacityResult(BaseModel):
    width: int
    height: int
    pixel_count: int
    capacity_bits: int
    capacity_bytes: int
    format: Optional[str] = None
    lossy: bool = False


class EncodeOutcome(BaseModel):
    index: int
    name: Optional[str] = None
    state: CarrierState
    written: bool = False
    filename: Optional[str] = None
    image: Optional[str] = Field(default=None, description="Encoded carrier as a PNG data URL")
    hidden_width: Optional[int] = None
    hidden_height: Optional[int] = None
    used_bits: int = 0
    capacity_bits: int = 0
    error: Optional[str] = None
    error_code: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class DecodeOutcome(BaseModel):
    index: int
    name: Optional[str] = None
    state: CarrierState
    status: DecodeStatus
    text: str = ""
    image: Optional[str] = Field(default=None, description="Nested image as a base64 data URL")
    width: int = 0
    height: int = 0
    error: Optional[str] = None
    error_code: Optional[str] = None
