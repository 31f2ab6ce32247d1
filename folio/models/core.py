"""Core models for request/response handling."""

import re
from dataclasses import dataclass, field

DEFAULT_FILENAME = "upload"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_EXTENSION = "bin"

_EXTENSION_CHARS = re.compile(r"[^a-z0-9]")
_PATH_SEPARATORS = re.compile(r"[\\/]")
_MAX_EXTENSION_LENGTH = 10


@dataclass(frozen=True, slots=True)
class ExtractedFile:
    """File pulled out of a multipart/form-data request body.

    The filename comes straight from the client and is not sanitized; use
    ``extension`` rather than the raw name when building storage paths.
    """

    data: bytes
    filename: str = DEFAULT_FILENAME
    content_type: str = DEFAULT_CONTENT_TYPE
    size: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "size", len(self.data))

    @property
    def extension(self) -> str:
        """Lowercase alphanumeric extension of the filename, or ``bin``."""
        basename = _PATH_SEPARATORS.split(self.filename)[-1]
        _, dot, suffix = basename.rpartition(".")
        if not dot:
            return DEFAULT_EXTENSION
        cleaned = _EXTENSION_CHARS.sub("", suffix.lower())[:_MAX_EXTENSION_LENGTH]
        return cleaned or DEFAULT_EXTENSION
