"""
API routes for the Stego Codec Service
"""

import logging
from io import BytesIO
from threading import Lock
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from src.utility.constants_manager import ConstantsManager
from ..core.errors import StegoError
from ..core.service import StegoCodecService
from ..models.codec_models import CapacityResult, CarrierSlot, CarrierState, DecodeRequest
from ..utils.image_utils import load_image_from_input
from ..utils.validation import validate_batch_size, validate_hidden_targets, validate_positional
from .responses import StegoAPIResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/codec", tags=["codec"])

# Service instance
codec_service = StegoCodecService()


class CodecStats:
    def __init__(self):
        self._lock = Lock()
        self.encoded_count = 0
        self.decoded_count = 0
        self.total_bytes_processed = 0

    def record(self, encoded: int = 0, decoded: int = 0, size: int = 0) -> None:
        with self._lock:
            self.encoded_count += encoded
            self.decoded_count += decoded
            self.total_bytes_processed += size

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "encoded_count": self.encoded_count,
                "decoded_count": self.decoded_count,
                "total_bytes_processed": self.total_bytes_processed,
            }


stats = CodecStats()


def send_response(
    status_code: int,
    message: str,
    details: Optional[dict] = None
) -> JSONResponse:
    """
    Helper function to send consistent API responses

    Args:
        status_code: HTTP status code
        message: Response message
        details: Optional additional details

    Returns:
        JSONResponse with consistent format
    """
    return JSONResponse(
        status_code=status_code,
        content=StegoAPIResult(
            success=status_code < 400,
            message=message,
            details=details
        ).model_dump(mode="json")
    )


def error_details(exc: StegoError) -> dict:
    details = {"code": exc.code}
    if exc.carrier_index is not None:
        details["carrier_index"] = exc.carrier_index
    return details


@router.post("/capacity", response_model=CapacityResult)
async def check_capacity(file: UploadFile = File(...)):
    """
    Check how much an image can carry

    Args:
        file: The image file to check

    Returns:
        CapacityResult with capacity information
    """
    try:
        img = load_image_from_input(BytesIO(await file.read()))
        return codec_service.capacity(img)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/encode", response_model=StegoAPIResult)
async def encode(
    carriers: List[UploadFile] = File(...),
    keys: List[str] = Form(...),
    texts: Optional[List[str]] = Form(None),
    hidden_images: Optional[List[UploadFile]] = File(None),
    hidden_targets: Optional[List[int]] = Form(None),
):
    """
    Hide text and/or a nested image in each carrier

    Args:
        carriers: Carrier images
        keys: One encryption key per carrier
        texts: Optional text per carrier, by position (empty = none)
        hidden_images: Optional nested images
        hidden_targets: 0-based carrier index for each nested image

    Returns:
        StegoAPIResult whose details.results holds one outcome per carrier
    """
    texts = texts or []
    hidden_images = hidden_images or []
    hidden_targets = hidden_targets or []
    try:
        validate_batch_size(len(carriers), ConstantsManager().get_max_carriers())
        validate_positional(keys, len(carriers), "keys")
        if texts:
            validate_positional(texts, len(carriers), "texts")
        validate_hidden_targets(hidden_targets, len(hidden_images), len(carriers))

        logger.info(
            "Received encode request: carriers=%d, texts=%d, hidden_images=%d",
            len(carriers), sum(1 for t in texts if t), len(hidden_images),
        )

        hidden_by_carrier = {}
        for target, upload in zip(hidden_targets, hidden_images):
            hidden_by_carrier[target] = await upload.read()

        slots = []
        total_size = 0
        for index, upload in enumerate(carriers):
            data = await upload.read()
            total_size += len(data) + len(hidden_by_carrier.get(index, b""))
            slots.append(CarrierSlot(
                index=index,
                name=upload.filename,
                carrier=data,
                text=(texts[index] or None) if texts else None,
                hidden_image=hidden_by_carrier.get(index),
                key=keys[index] or None,
            ))

        results = await run_in_threadpool(codec_service.encode_batch, slots)
    except StegoError as e:
        logger.warning("Rejected encode request: %s", e)
        return send_response(400, str(e), error_details(e))

    written = sum(1 for r in results if r.written)
    stats.record(encoded=written, size=total_size)
    failed = sum(1 for r in results if r.state == CarrierState.FAILED)
    message = f"Encoded {written} of {len(results)} image(s)"
    if failed:
        message += f", {failed} failed"
    return send_response(
        200,
        message,
        {"results": [r.model_dump(mode="json") for r in results]}
    )


@router.post("/decode", response_model=StegoAPIResult)
async def decode(
    carriers: List[UploadFile] = File(...),
    keys: List[str] = Form(...),
):
    """
    Recover hidden payloads from each carrier

    Args:
        carriers: Encoded carrier images
        keys: One decryption key per carrier

    Returns:
        StegoAPIResult whose details.results holds one outcome per carrier
    """
    try:
        validate_batch_size(len(carriers), ConstantsManager().get_max_carriers())
        validate_positional(keys, len(carriers), "keys")
    except StegoError as e:
        return send_response(400, str(e), error_details(e))

    logger.info("Received decode request: carriers=%d", len(carriers))

    requests = []
    total_size = 0
    for index, upload in enumerate(carriers):
        data = await upload.read()
        total_size += len(data)
        requests.append(DecodeRequest(index=index, name=upload.filename, carrier=data, key=keys[index] or None))

    results = await run_in_threadpool(codec_service.decode_batch, requests)
    stats.record(decoded=len(results), size=total_size)

    failed = sum(1 for r in results if r.state == CarrierState.FAILED)
    return send_response(
        200,
        f"Decoded {len(results) - failed} of {len(results)} image(s)",
        {"results": [r.model_dump(mode="json") for r in results]}
    )
