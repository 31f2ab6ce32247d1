"""Single-file extractor for buffered multipart/form-data request bodies.

The body is scanned once as a small state machine over an index:

    SEEKING_DELIMITER -> IN_HEADERS -> IN_PAYLOAD

Known limits, kept for compatibility with existing clients:

- Only the first ``HEADER_SCAN_LIMIT`` bytes of a part are inspected for its
  ``Content-Disposition`` / ``filename`` markers.
- Only the first file-bearing part is returned; later files are ignored.
- The filename is returned as sent; callers sanitize it before using it in
  storage paths.
"""

import re
from dataclasses import dataclass
from enum import StrEnum

from folio.models.core import DEFAULT_CONTENT_TYPE, DEFAULT_FILENAME, ExtractedFile

MULTIPART_FORM_DATA = "multipart/form-data"
HEADER_SCAN_LIMIT = 500
HEADER_SEPARATOR = b"\r\n\r\n"
PAYLOAD_TRAILER_LENGTH = 2

_BOUNDARY_PATTERN = re.compile(r'boundary=(?:"([^"]*)"|([^;\s]*))')
_FILENAME_PATTERN = re.compile(r'filename="([^"]*)"')
_CONTENT_TYPE_PATTERN = re.compile(r"Content-Type:\s*([^\r\n]+)", re.IGNORECASE)


class MultipartError(Exception):
    """Base exception for multipart parsing failures."""

    code: str = "invalid_multipart"


class UnsupportedMediaTypeError(MultipartError):
    """Content-Type is not multipart/form-data."""

    code = "unsupported_media_type"


class MissingBoundaryError(MultipartError):
    """Content-Type has no usable boundary parameter."""

    code = "missing_boundary"


class NoFileFoundError(MultipartError):
    """Body is well formed but carries no usable file part."""

    code = "no_file_found"


class ScanState(StrEnum):
    """Scanner states while walking the request body."""

    SEEKING_DELIMITER = "seeking_delimiter"
    IN_HEADERS = "in_headers"
    IN_PAYLOAD = "in_payload"


@dataclass(frozen=True, slots=True)
class PartSpan:
    """Index range of one part, between the end of a delimiter and the start of the next."""

    start: int
    end: int


def parse_boundary(content_type: str | None) -> str:
    """Validate the Content-Type header and return its boundary token."""
    if not content_type or MULTIPART_FORM_DATA not in content_type:
        raise UnsupportedMediaTypeError(f"Content-Type must be {MULTIPART_FORM_DATA}")

    match = _BOUNDARY_PATTERN.search(content_type)
    boundary = (match.group(1) or match.group(2)) if match else None
    if not boundary:
        raise MissingBoundaryError("Invalid multipart form data: missing boundary")
    return boundary


def read_header_window(body: bytes | bytearray, part: PartSpan) -> str:
    """Decode the first HEADER_SCAN_LIMIT bytes of a part."""
    end = min(part.start + HEADER_SCAN_LIMIT, part.end)
    return body[part.start : end].decode("utf-8", errors="replace")


def is_file_bearing(header_window: str) -> bool:
    return "Content-Disposition" in header_window and "filename" in header_window


class MultipartScanner:
    """Walks a buffered body and returns the first file-bearing part."""

    def __init__(self, body: bytes | bytearray, boundary: str) -> None:
        self._body = body
        self._delimiter = f"--{boundary}".encode()

    def extract(self) -> ExtractedFile:
        body = self._body
        delimiter_length = len(self._delimiter)

        cursor = body.find(self._delimiter)
        if cursor == -1:
            raise NoFileFoundError("No file found in request")
        cursor += delimiter_length

        state = ScanState.SEEKING_DELIMITER
        part = PartSpan(cursor, cursor)
        header_window = ""
        separator = -1

        while True:
            match state:
                case ScanState.SEEKING_DELIMITER:
                    next_delimiter = body.find(self._delimiter, cursor)
                    if next_delimiter == -1:
                        break
                    part = PartSpan(cursor, next_delimiter)
                    cursor = next_delimiter + delimiter_length
                    state = ScanState.IN_HEADERS

                case ScanState.IN_HEADERS:
                    header_window = read_header_window(body, part)
                    separator = body.find(HEADER_SEPARATOR, part.start, part.end)
                    if is_file_bearing(header_window) and separator != -1:
                        state = ScanState.IN_PAYLOAD
                    else:
                        state = ScanState.SEEKING_DELIMITER

                case ScanState.IN_PAYLOAD:
                    payload_start = separator + len(HEADER_SEPARATOR)
                    payload_end = part.end - PAYLOAD_TRAILER_LENGTH
                    if payload_end < payload_start:
                        state = ScanState.SEEKING_DELIMITER
                        continue
                    return ExtractedFile(
                        data=bytes(body[payload_start:payload_end]),
                        filename=_header_filename(header_window),
                        content_type=_header_content_type(header_window),
                    )

        raise NoFileFoundError("No file found in request")


def _header_filename(header_window: str) -> str:
    match = _FILENAME_PATTERN.search(header_window)
    return match.group(1) if match else DEFAULT_FILENAME


def _header_content_type(header_window: str) -> str:
    match = _CONTENT_TYPE_PATTERN.search(header_window)
    return match.group(1).strip() if match else DEFAULT_CONTENT_TYPE


def extract(body: bytes | bytearray, content_type: str | None) -> ExtractedFile:
    """Extract the first uploaded file from a multipart/form-data body.

    Raises UnsupportedMediaTypeError, MissingBoundaryError or NoFileFoundError.
    """
    boundary = parse_boundary(content_type)
    return MultipartScanner(body, boundary).extract()
