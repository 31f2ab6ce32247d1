"""File upload middlewares: request size guard and OpenAPI multipart/form-data patching."""

import orjson
from robyn import Request, Response

from folio.core.logger import LogIcon, logger
from folio.core.router import FILE_UPLOAD_ENDPOINTS, json_error, raw_body
from folio.core.settings import settings as st
from folio.middlewares.base import BaseMiddleware


class RequestSizeLimitMiddleware(BaseMiddleware):
    """Rejects request bodies larger than MAX_BODY_SIZE before the handler runs."""

    def __init__(self, endpoints: set[str] | None = None, max_body_size: int | None = None) -> None:
        super().__init__(endpoints if endpoints is not None else FILE_UPLOAD_ENDPOINTS)
        self.max_body_size = max_body_size or st.MAX_BODY_SIZE

    def declared_size(self, request: Request) -> int:
        declared = request.headers.get("content-length")
        if declared and declared.strip().isdigit():
            return int(declared)
        return len(raw_body(request))

    def before(self, request: Request) -> Request | Response:
        size = self.declared_size(request)
        if size <= self.max_body_size:
            return request

        logger.warning("Request body too large", icon=LogIcon.FORBIDDEN, size=size, limit=self.max_body_size)
        return json_error(
            413,
            {"error": "payload_too_large", "detail": f"Request body exceeds {self.max_body_size} bytes"},
        )


def multipart_request_body(field_name: str) -> dict:
    """OpenAPI requestBody for a single-file multipart/form-data upload."""
    return {
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {
                        field_name: {
                            "type": "string",
                            "format": "binary",
                            "description": "File to upload (only the first file part is read)",
                        }
                    },
                    "required": [field_name],
                }
            }
        },
        "required": True,
    }


class FileUploadOpenAPIMiddleware(BaseMiddleware):
    """Patches OpenAPI responses to use multipart/form-data for file upload endpoints."""

    endpoints = frozenset(["/openapi.json"])

    def __init__(self, field_name: str | None = None) -> None:
        super().__init__()
        self.field_name = field_name or st.UPLOAD_FIELD

    def after(self, response: Response) -> Response:
        """Patch OpenAPI spec with multipart/form-data for file upload endpoints."""
        if not FILE_UPLOAD_ENDPOINTS:
            return response

        try:
            spec = orjson.loads(response.description)
        except orjson.JSONDecodeError:
            logger.warning("OpenAPI document is not valid JSON, skipping patch", icon=LogIcon.WARNING)
            return response

        paths = spec.get("paths", {})
        for endpoint in FILE_UPLOAD_ENDPOINTS:
            for operation in paths.get(endpoint, {}).values():
                operation["requestBody"] = multipart_request_body(self.field_name)

        response.description = orjson.dumps(spec).decode()
        return response
