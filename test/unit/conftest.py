"""Test fixtures for folio-cms-api unit tests."""

from dataclasses import dataclass, field

import pytest

BOUNDARY = "XYZ123"


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._data[key] = value


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    body: bytes | str = b""
    headers: MockHeaders = field(default_factory=MockHeaders)
    files: dict[str, bytes] = field(default_factory=dict)
    method: str = "POST"
    path: str = "/"


# -----------------------------------------------------------------------------
# Multipart body builders
# -----------------------------------------------------------------------------


def file_part(
    data: bytes,
    filename: str | None = "cat.png",
    content_type: str | None = "image/png",
    name: str = "image",
) -> bytes:
    """Build one file-bearing part (without its leading delimiter)."""
    disposition = f'Content-Disposition: form-data; name="{name}"'
    if filename is not None:
        disposition += f'; filename="{filename}"'
    headers = [disposition]
    if content_type is not None:
        headers.append(f"Content-Type: {content_type}")
    return ("\r\n".join(headers) + "\r\n\r\n").encode() + data + b"\r\n"


def field_part(name: str, value: str) -> bytes:
    """Build one plain form-field part (without its leading delimiter)."""
    return f'Content-Disposition: form-data; name="{name}"\r\n\r\n{value}\r\n'.encode()


def multipart_body(*parts: bytes, boundary: str = BOUNDARY) -> bytes:
    """Join parts with delimiters and close the body."""
    delimiter = f"--{boundary}".encode()
    body = b"".join(delimiter + b"\r\n" + part for part in parts)
    return body + delimiter + b"--\r\n"


def multipart_content_type(boundary: str = BOUNDARY) -> str:
    return f"multipart/form-data; boundary={boundary}"


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def make_mock_request():
    """Factory fixture to create mock requests."""

    def _make(body: bytes | str = b"", headers: dict | None = None) -> MockRequest:
        return MockRequest(body=body, headers=MockHeaders(dict(headers or {})))

    return _make


@pytest.fixture
def make_upload_request(make_mock_request):
    """Factory fixture for multipart upload requests with a single file."""

    def _make(data: bytes = b"\x89PNG\r\n\x1a\n", **part_kwargs) -> MockRequest:
        body = multipart_body(file_part(data, **part_kwargs))
        return make_mock_request(
            body=body,
            headers={"content-type": multipart_content_type(), "content-length": str(len(body))},
        )

    return _make
