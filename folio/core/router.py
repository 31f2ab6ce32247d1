"""Router with multipart file extraction and response handling."""

import inspect
import mimetypes
from collections.abc import Callable
from functools import wraps
from typing import Any

import orjson
from pydantic import BaseModel
from robyn import Request, Response, SubRouter, status_codes
from robyn.robyn import HttpMethod

from folio.core.logger import LogIcon, logger
from folio.core.multipart import MultipartError, MultipartScanner, NoFileFoundError, parse_boundary
from folio.models.core import DEFAULT_CONTENT_TYPE, ExtractedFile

FILE_UPLOAD_ENDPOINTS: set[str] = set()


def json_error(status_code: int, payload: dict[str, Any]) -> Response:
    """Build a JSON error response."""
    return Response(
        status_code=status_code,
        headers={"content-type": "application/json"},
        description=orjson.dumps(payload).decode(),
    )


def parse_endpoint_signature(sig: inspect.Signature) -> set[str]:
    """Return the names of parameters annotated with ExtractedFile."""
    return {name for name, param in sig.parameters.items() if param.annotation is ExtractedFile}


def raw_body(request: Request) -> bytes:
    """Return the request body as bytes regardless of how Robyn decoded it."""
    body = request.body
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body or b"")


def decoded_upload(files: dict[str, bytes]) -> ExtractedFile:
    """Build an ExtractedFile from a multipart form the server already decoded.

    The decoded mapping only keeps filename and payload, so the content type is
    guessed from the filename.
    """
    if not files:
        raise NoFileFoundError("No file found in request")
    filename, data = next(iter(files.items()))
    content_type, _ = mimetypes.guess_type(filename)
    return ExtractedFile(data=bytes(data), filename=filename, content_type=content_type or DEFAULT_CONTENT_TYPE)


def read_upload(request: Request) -> ExtractedFile:
    """Extract the first uploaded file from a multipart request.

    The raw body is scanned whenever it still carries the multipart framing.
    The Robyn server decodes multipart bodies before handlers run and leaves
    the payloads in ``request.files``; those are used when the framing is gone.
    """
    boundary = parse_boundary(request.headers.get("content-type"))
    body = raw_body(request)
    if f"--{boundary}".encode() in body:
        return MultipartScanner(body, boundary).extract()
    return decoded_upload(request.files or {})


def parse_request_files(
    file_params: set[str],
    request: Request,
    kwargs: dict[str, Any],
) -> Response | None:
    """Extract the uploaded file from a multipart request into ExtractedFile kwargs."""
    if not file_params:
        return None

    try:
        extracted = read_upload(request)
    except MultipartError as ex:
        logger.warning("Rejected multipart upload", icon=LogIcon.VALIDATION, error=ex.code, detail=str(ex))
        return json_error(status_codes.HTTP_400_BAD_REQUEST, {"error": ex.code, "detail": str(ex)})

    for param_name in file_params:
        kwargs[param_name] = extracted

    return None



def parse_response(result: Any) -> Response:
    """Convert handler result to Response."""
    match result:
        case Response():
            return result
        case BaseModel():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=result.model_dump_json(indent=4),
            )
        case dict():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=orjson.dumps(result).decode(),
            )
        case _:
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={},
                description=str(result),
            )


HTTP_METHODS = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.DELETE,
    HttpMethod.PATCH,
    HttpMethod.HEAD,
    HttpMethod.OPTIONS,
    HttpMethod.TRACE,
    HttpMethod.CONNECT,
)


def _create_method_wrapper(original_method: Callable, router_prefix: str = "") -> Callable:
    @wraps(original_method)
    def method_wrapper(*args, **kwargs) -> Callable:
        endpoint = args[0] if args else kwargs.get("endpoint", "")
        decorator = original_method(*args, **kwargs)

        def handler_decorator(handler: Callable) -> Callable:
            sig = inspect.signature(handler)
            file_params = parse_endpoint_signature(sig)
            has_request_param = "request" in sig.parameters

            if file_params:
                full_path = f"{router_prefix}{endpoint}".replace("//", "/")
                FILE_UPLOAD_ENDPOINTS.add(full_path)

            @wraps(handler)
            async def wrapped_handler(request: Request, **h_kwargs):
                if file_params and (error := parse_request_files(file_params, request, h_kwargs)):
                    return error

                # Pass request to handler only if it declared it
                if has_request_param:
                    h_kwargs["request"] = request

                result = await handler(**h_kwargs)
                return parse_response(result)

            # Build signature: always include request for Robyn injection
            new_params = [inspect.Parameter("request", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=Request)]
            for name, param in sig.parameters.items():
                if name == "request" or name in file_params:
                    continue
                new_params.append(param)

            wrapped_handler.__signature__ = sig.replace(parameters=new_params)  # type: ignore[attr-defined]
            return decorator(wrapped_handler)

        return handler_decorator

    return method_wrapper


class Router(SubRouter):
    """SubRouter with automatic multipart file injection and response handling."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._prefix = kwargs.get("prefix", "")
        self._wrap_methods()

    def _wrap_methods(self) -> None:
        """Wrap HTTP methods with file injection."""
        for method in HTTP_METHODS:
            method_name = str(method).split(".")[-1].lower()
            if hasattr(self, method_name):
                original_method = getattr(self, method_name)
                wrapped_method = _create_method_wrapper(original_method, self._prefix)
                setattr(self, method_name, wrapped_method)
