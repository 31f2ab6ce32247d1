"""Image upload endpoint."""

import hashlib
import secrets
import string
import time

from pydantic import BaseModel

from folio.core.logger import LogIcon, logger
from folio.core.router import Router
from folio.models.core import ExtractedFile

router = Router(__file__, prefix="/api")

_NAME_ALPHABET = string.ascii_lowercase + string.digits
_NAME_SUFFIX_LENGTH = 13


class UploadResponse(BaseModel):
    """Metadata of an accepted upload."""

    name: str
    filename: str
    content_type: str
    size: int
    sha256: str


def unique_name(upload: ExtractedFile, now: float | None = None) -> str:
    """Storage name ``<unix-millis>-<random>.<ext>``; never derived from the raw filename."""
    millis = int((time.time() if now is None else now) * 1000)
    suffix = "".join(secrets.choice(_NAME_ALPHABET) for _ in range(_NAME_SUFFIX_LENGTH))
    return f"{millis}-{suffix}.{upload.extension}"


@router.post("/upload")
async def upload_image(image: ExtractedFile) -> UploadResponse:
    """Accept a single multipart file and describe it."""
    name = unique_name(image)
    logger.info(
        "Upload accepted",
        icon=LogIcon.UPLOAD,
        name=name,
        content_type=image.content_type,
        size=image.size,
    )
    return UploadResponse(
        name=name,
        filename=image.filename,
        content_type=image.content_type,
        size=image.size,
        sha256=hashlib.sha256(image.data).hexdigest(),
    )
