from __future__ import annotations

import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .schemas import ExerciseImage

logger = logging.getLogger(__name__)

# Inline image types accepted by Gemini.
SUPPORTED_MIME_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/webp", "image/heic", "image/heif"}
)

_DEFAULT_MIME_TYPE = "image/jpeg"


def _normalize_mime(mime_type: Optional[str]) -> str:
    mime = (mime_type or "").split(";", 1)[0].strip().lower()
    if mime == "image/jpg":
        return "image/jpeg"
    return mime


def _encode_jpeg(img: Image.Image) -> bytes:
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    out = io.BytesIO()
    img.save(out, format="JPEG", quality=92)
    return out.getvalue()


def prepare_image(image: ExerciseImage) -> ExerciseImage:
    """Return an image whose MIME type the model accepts.

    Supported declared types pass through untouched. Otherwise the bytes are
    sniffed; known formats keep their bytes, anything else decodable is
    re-encoded to JPEG. Undecodable bytes pass through so the model can
    reject them.
    """
    declared = _normalize_mime(image.mime_type)
    if declared in SUPPORTED_MIME_TYPES:
        if declared != image.mime_type:
            return image.model_copy(update={"mime_type": declared})
        return image

    try:
        with Image.open(io.BytesIO(image.data)) as img:
            detected = _normalize_mime(Image.MIME.get(img.format or "", ""))
            if detected in SUPPORTED_MIME_TYPES:
                return image.model_copy(update={"mime_type": detected})
            logger.info("Re-encoding %s upload as JPEG", img.format or "unknown")
            data = _encode_jpeg(img)
    except (UnidentifiedImageError, OSError, ValueError):
        fallback = declared if declared.startswith("image/") else _DEFAULT_MIME_TYPE
        logger.warning("Could not decode upload %r, sending as %s", image.filename, fallback)
        return image.model_copy(update={"mime_type": fallback})

    return image.model_copy(update={"data": data, "mime_type": "image/jpeg"})
