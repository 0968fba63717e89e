"""
Tenny Ledger: bill upload flow
select → local preview → multipart upload with progress → OCR review.
All text extraction happens on the backend.
"""
from __future__ import annotations

import base64
import io
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger
from PIL import Image

from tenny.config import settings
from tenny.errors import ApiError
from tenny.models.ocr_result import OcrResult
from tenny.services.api_client import ApiClient

ACCEPTED_TYPES: Dict[str, Tuple[str, ...]] = {
    "image/jpeg": (".jpg", ".jpeg"),
    "image/png": (".png",),
    "application/pdf": (".pdf",),
}
NOT_DETECTED = "Not detected"
PREVIEW_MAX_SIDE = 800

INVALID_TYPE_MSG = "Invalid file type. Please upload an image (JPEG, PNG) or PDF."
NO_FILE_MSG = "Please select a bill image first."
UPLOAD_FAILED_MSG = "Failed to process the image"
UNEXPECTED_MSG = "An unexpected error occurred during upload"


class UploadState(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    PROCESSED = "processed"
    FAILED = "failed"


@dataclass
class SelectedFile:
    name: str
    content: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)


def resolve_content_type(filename: str, content_type: Optional[str]) -> Optional[str]:
    """Accepted MIME type for the file, or None when it is not JPEG/PNG/PDF."""
    if content_type and content_type != "application/octet-stream":
        ctype = "image/jpeg" if content_type == "image/jpg" else content_type
        return ctype if ctype in ACCEPTED_TYPES else None
    suffix = Path(filename).suffix.lower()
    for ctype, suffixes in ACCEPTED_TYPES.items():
        if suffix in suffixes:
            return ctype
    guessed, _ = mimetypes.guess_type(filename)
    return guessed if guessed in ACCEPTED_TYPES else None


def make_preview(content: bytes, content_type: str, max_side: int = PREVIEW_MAX_SIDE) -> str:
    """Data URL for the picked file; images are shrunk so the page stays light."""
    if content_type.startswith("image/"):
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.thumbnail((max_side, max_side))
                fmt = "PNG" if content_type == "image/png" else "JPEG"
                if fmt == "JPEG" and img.mode not in ("RGB", "L"):
                    img = img.convert("RGB")
                buf = io.BytesIO()
                img.save(buf, format=fmt)
                content = buf.getvalue()
        except (OSError, Image.DecompressionBombError) as e:
            logger.warning("Thumbnail failed, previewing original bytes: {}", e)
    return f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"


def _mb(n: int) -> str:
    return f"{n / 1024 / 1024:g}MB"


class UploadFlow:
    """
    States: idle → uploading → processed | failed.

    A failed upload keeps the selected file so submit() can simply be called
    again. A rejected selection never reaches the network.
    """

    def __init__(
        self,
        client: ApiClient,
        max_bytes: Optional[int] = None,
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.client = client
        self.max_bytes = max_bytes if max_bytes is not None else settings.MAX_UPLOAD_BYTES
        self.on_progress = on_progress
        self.reset()

    def reset(self) -> None:
        self.state = UploadState.IDLE
        self.file: Optional[SelectedFile] = None
        self.preview: Optional[str] = None
        self.progress = 0
        self.result: Optional[OcrResult] = None
        self.error: Optional[str] = None

    @property
    def can_submit(self) -> bool:
        return self.file is not None and self.state != UploadState.UPLOADING

    def select(self, filename: str, content: bytes, content_type: Optional[str] = None) -> bool:
        ctype = resolve_content_type(filename, content_type)
        if ctype is None:
            return self._reject(filename, INVALID_TYPE_MSG)
        if len(content) > self.max_bytes:
            return self._reject(filename, f"File is too large. Max size is {_mb(self.max_bytes)}")

        self.reset()
        self.file = SelectedFile(name=filename, content=content, content_type=ctype)
        self.preview = make_preview(content, ctype)
        return True

    def _reject(self, filename: str, message: str) -> bool:
        logger.warning("Rejected upload {}: {}", filename, message)
        self.reset()
        self.error = message
        return False

    def _progress(self, sent: int, total: int) -> None:
        if total:
            self.progress = round(sent * 100 / total)
        if self.on_progress is not None:
            self.on_progress(self.progress)

    def submit(self, engine: Optional[str] = None) -> Optional[OcrResult]:
        if self.file is None:
            self.error = NO_FILE_MSG
            return None
        if self.state == UploadState.UPLOADING:
            return None

        self.state = UploadState.UPLOADING
        self.progress = 0
        self.error = None
        self.result = None
        f = self.file
        try:
            res = self.client.process_image(
                f.name, f.content, f.content_type, engine=engine, on_progress=self._progress
            )
            result = OcrResult.model_validate(res.json())
        except ApiError as e:
            self.state = UploadState.FAILED
            self.error = e.message or UPLOAD_FAILED_MSG
            logger.warning("OCR upload failed for {}: {}", f.name, self.error)
            return None
        except ValueError as e:
            self.state = UploadState.FAILED
            self.error = UNEXPECTED_MSG
            logger.error("OCR response for {} unreadable: {}", f.name, e)
            return None

        self.state = UploadState.PROCESSED
        self.progress = 100
        self.result = result
        logger.info(
            "OCR processed {} source={} confidence={:.2f} missing={}",
            f.name,
            result.source,
            result.confidence,
            result.extracted_data.missing_fields,
        )
        return result

    def prefill(self) -> Dict[str, Any]:
        """Initial values for the new-transaction form."""
        if self.result is None:
            return {}
        data = self.result.extracted_data
        return {
            "amount": "" if data.total is None else f"{data.total:.2f}".rstrip("0").rstrip("."),
            "date": data.date or "",
            "merchant": data.merchant or "",
            "items": [i.model_dump(exclude_none=True) for i in data.items],
        }


def review_fields(result: OcrResult) -> List[Tuple[str, str]]:
    data = result.extracted_data
    total = f"{data.total:.2f}" if data.total is not None else NOT_DETECTED
    return [
        ("Total Amount", total),
        ("Merchant", data.merchant or NOT_DETECTED),
        ("Date", data.date or NOT_DETECTED),
    ]
