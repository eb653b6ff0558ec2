"""
Main service class for the steganographic payload codec
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

from PIL import Image

from src.utility.constants_manager import ConstantsManager
from ..models.codec_models import (
    CapacityResult,
    CarrierSlot,
    CarrierState,
    DecodeOutcome,
    DecodeRequest,
    DecodeStatus,
    EncodeOutcome,
)
from ..utils.image_utils import image_to_png_bytes, is_lossy, load_image_from_input, to_data_url
from ..utils.validation import validate_keys, validate_payload_fits
from .bits import bits_to_bytes, capacity_bits, embed, extract, required_bits
from .classifier import assemble
from .errors import InvalidImageError, MissingKeyError, NoHiddenDataError, StegoError, WrongKeyError
from .framing import build_frame, split_frame


logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSITIONS = {
    CarrierState.PENDING: {CarrierState.EMBEDDING, CarrierState.EXTRACTING, CarrierState.FAILED},
    CarrierState.EMBEDDING: {CarrierState.DONE, CarrierState.FAILED},
    CarrierState.EXTRACTING: {CarrierState.DONE, CarrierState.FAILED},
    CarrierState.DONE: set(),
    CarrierState.FAILED: set(),
}


class CarrierJob:
    """Tracks the lifecycle of one carrier through encode or decode"""

    def __init__(self, index: int):
        self.index = index
        self.state = CarrierState.PENDING
        self.reason: Optional[str] = None

    def advance(self, state: CarrierState, reason: Optional[str] = None) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Carrier {self.index}: illegal transition {self.state.value} -> {state.value}")
        logger.debug("Carrier %d: %s -> %s", self.index, self.state.value, state.value)
        self.state = state
        self.reason = reason


def output_filename(index: int, written: bool, has_image: bool) -> str:
    if not written:
        return f"image_{index + 1}.png"
    if has_image:
        return f"encoded_hidden_{index + 1}.png"
    return f"encoded_text_{index + 1}.png"


class StegoCodecService:
    """
    High-level interface for hiding and recovering encrypted payloads

    Every carrier is handled independently: one carrier's failure is
    reported in its own outcome and never affects the others.
    """

    def __init__(self, max_workers: Optional[int] = None, scrypt_cost: Optional[int] = None):
        self.max_workers = max_workers
        self.scrypt_cost = scrypt_cost

    def capacity(self, image: Image.Image) -> CapacityResult:
        """
        Calculate how many bits an image can carry

        Args:
            image: Input image

        Returns:
            CapacityResult with capacity information
        """
        w, h = image.size
        total_bits = capacity_bits(image)
        return CapacityResult(
            width=w,
            height=h,
            pixel_count=w * h,
            capacity_bits=total_bits,
            capacity_bytes=total_bits // 8,
            format=image.format,
            lossy=is_lossy(image),
        )

    def encode_carrier(self, slot: CarrierSlot) -> EncodeOutcome:
        """
        Hide the slot's payloads in its carrier

        Args:
            slot: Carrier with its text, hidden image and key

        Returns:
            EncodeOutcome; errors are reported in the outcome, not raised
        """
        job = CarrierJob(slot.index)
        outcome = EncodeOutcome(index=slot.index, name=slot.name, state=job.state)
        try:
            cover = load_image_from_input(data=slot.carrier)
            if is_lossy(cover):
                logger.warning("Carrier %d is %s; output will be written as PNG", slot.index, cover.format)
            outcome.capacity_bits = capacity_bits(cover)

            job.advance(CarrierState.EMBEDDING)
            build = build_frame(slot.text, slot.hidden_image, slot.key, self.scrypt_cost)
            outcome.warnings.extend(build.warnings)

            if build.is_empty:
                # Nothing to hide: hand the carrier back untouched
                result_image = cover
            else:
                outcome.used_bits = required_bits(build.frame)
                validate_payload_fits(outcome.used_bits, outcome.capacity_bits, slot.index)
                result_image = embed(cover, build.frame)
                outcome.written = True
                if build.image_size is not None:
                    outcome.hidden_width, outcome.hidden_height = build.image_size

            outcome.image = to_data_url(image_to_png_bytes(result_image))
            outcome.filename = output_filename(slot.index, outcome.written, build.has_image)
            job.advance(CarrierState.DONE)
        except StegoError as exc:
            logger.warning("Encoding carrier %d failed: %s", slot.index, exc)
            job.advance(CarrierState.FAILED, str(exc))
            outcome.error, outcome.error_code = str(exc), exc.code
        except Exception as exc:
            logger.exception("Unexpected error encoding carrier %d", slot.index)
            job.advance(CarrierState.FAILED, str(exc))
            outcome.error, outcome.error_code = str(exc), "internal_error"
        outcome.state = job.state
        return outcome

    def decode_carrier(self, request: DecodeRequest) -> DecodeOutcome:
        """
        Recover and decrypt the payloads hidden in one carrier

        Args:
            request: Carrier bytes and the key to try

        Returns:
            DecodeOutcome; errors are reported in the outcome, not raised
        """
        job = CarrierJob(request.index)
        outcome = DecodeOutcome(
            index=request.index, name=request.name, state=job.state, status=DecodeStatus.FAILED
        )
        try:
            stego_image = load_image_from_input(data=request.carrier)
            if is_lossy(stego_image):
                raise InvalidImageError(
                    f"{stego_image.format} carriers cannot hold hidden data; use the PNG produced by encoding"
                )

            job.advance(CarrierState.EXTRACTING)
            tokens = split_frame(bits_to_bytes(extract(stego_image)))
            if tokens and not request.key:
                raise MissingKeyError("Missing key", carrier_index=request.index)
            decoded = assemble(tokens, request.key or "", self.scrypt_cost)

            outcome.text = decoded.text
            outcome.image = decoded.image
            outcome.width, outcome.height = decoded.width, decoded.height
            outcome.status = DecodeStatus.DECODED
            job.advance(CarrierState.DONE)
        except NoHiddenDataError as exc:
            outcome.status = DecodeStatus.NO_HIDDEN_DATA
            outcome.text = str(exc)
            job.advance(CarrierState.DONE)
        except WrongKeyError as exc:
            logger.warning("Carrier %d: wrong key", request.index)
            outcome.status = DecodeStatus.WRONG_KEY
            outcome.error, outcome.error_code = "Wrong key", exc.code
            job.advance(CarrierState.FAILED, str(exc))
        except StegoError as exc:
            logger.warning("Decoding carrier %d failed: %s", request.index, exc)
            outcome.error, outcome.error_code = str(exc), exc.code
            job.advance(CarrierState.FAILED, str(exc))
        except Exception as exc:
            logger.exception("Unexpected error decoding carrier %d", request.index)
            outcome.error, outcome.error_code = str(exc), "internal_error"
            job.advance(CarrierState.FAILED, str(exc))
        outcome.state = job.state
        return outcome

    def encode_batch(self, slots: Sequence[CarrierSlot]) -> List[EncodeOutcome]:
        """
        Encode several carriers in parallel

        Args:
            slots: Carriers in input order

        Returns:
            One outcome per slot, in input order

        Raises:
            MissingKeyError: Before any encoding, if a slot with content has no key
        """
        validate_keys(slots)
        logger.info("Encoding %d carrier(s)", len(slots))
        return self._fan_out(self.encode_carrier, slots)

    def decode_batch(self, requests: Sequence[DecodeRequest]) -> List[DecodeOutcome]:
        """
        Decode several carriers in parallel

        Args:
            requests: Carriers in input order

        Returns:
            One outcome per request, in input order
        """
        logger.info("Decoding %d carrier(s)", len(requests))
        return self._fan_out(self.decode_carrier, requests)

    def _fan_out(self, task: Callable[..., T], items: Sequence) -> List[T]:
        if not items:
            return []
        workers = self.max_workers or ConstantsManager().get_max_workers()
        with ThreadPoolExecutor(max_workers=min(workers, len(items))) as pool:
            # map() yields in submission order and waits for every task
            return list(pool.map(task, items))
