"""Base middleware architecture for Robyn applications."""

from collections.abc import Callable

from robyn import Request, Response, Robyn
from robyn.robyn import HttpMethod, MiddlewareType

from folio.core.logger import LogIcon, logger


class BaseMiddleware:
    """Base class for middlewares with before/after hooks.

    An empty ``endpoints`` set registers the hooks globally, so they also run
    on routes Robyn adds at startup such as ``/openapi.json``.
    """

    endpoints: frozenset[str] = frozenset()

    def __init__(self, endpoints: frozenset[str] | set[str] | list[str] | None = None) -> None:
        if endpoints:
            self.endpoints = frozenset(endpoints)

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if not (cls.has_hook("before") or cls.has_hook("after")):
            raise TypeError(f"{cls.__name__} must implement at least one of before/after")

    def before(self, request: Request) -> Request | Response:
        """Called before request handling. Return Request to continue or Response to short-circuit."""
        return request

    def after(self, response: Response) -> Response:
        """Called after request handling. Return modified Response."""
        return response

    @classmethod
    def has_hook(cls, name: str) -> bool:
        """Check whether the before/after hook was implemented by the subclass."""
        return getattr(cls, name) is not getattr(BaseMiddleware, name)


class MiddlewareHandler:
    """Manages middleware registration for a Robyn application."""

    def __init__(self, app: Robyn) -> None:
        self._app = app
        self._middlewares: list[BaseMiddleware] = []

    @property
    def middlewares(self) -> list[BaseMiddleware]:
        return self._middlewares

    def register(self, middleware: BaseMiddleware | type[BaseMiddleware]) -> "MiddlewareHandler":
        """Register a middleware instance or class. Returns self for chaining."""
        if isinstance(middleware, type):
            middleware = middleware()
        self._middlewares.append(middleware)
        self._apply_middleware(middleware)
        logger.info(f"Registered middleware: {middleware.__class__.__name__}", icon=LogIcon.ADAPTER)
        return self

    def _apply_middleware(self, middleware: BaseMiddleware) -> None:
        """Apply middleware globally, or to each method of its endpoints."""
        hooks = []
        if middleware.has_hook("before"):
            hooks.append((MiddlewareType.BEFORE_REQUEST, self._wrap_before(middleware.before)))
        if middleware.has_hook("after"):
            hooks.append((MiddlewareType.AFTER_REQUEST, self._wrap_after(middleware.after)))

        if not middleware.endpoints:
            for middleware_type, wrapper in hooks:
                self._register_global(middleware_type, wrapper)
            return

        for endpoint in middleware.endpoints:
            for method in self._route_methods(endpoint):
                for middleware_type, wrapper in hooks:
                    self._app.middleware_router.add_route(middleware_type, endpoint, method, wrapper, {})

    def _route_methods(self, endpoint: str) -> list[HttpMethod]:
        """HTTP methods registered for an endpoint, GET for routes Robyn adds at startup."""
        methods = {
            str(route.route_type): route.route_type
            for route in self._app.router.get_routes()
            if route.route == endpoint
        }
        return list(methods.values()) or [HttpMethod.GET]

    def _register_global(self, middleware_type: MiddlewareType, wrapper: Callable) -> None:
        if middleware_type == MiddlewareType.BEFORE_REQUEST:
            self._app.before_request()(wrapper)
        else:
            self._app.after_request()(wrapper)

    @staticmethod
    def _wrap_before(handler: Callable) -> Callable:
        async def before_wrapper(request: Request) -> Request | Response:
            return handler(request)

        return before_wrapper

    @staticmethod
    def _wrap_after(handler: Callable) -> Callable:
        def after_wrapper(response: Response) -> Response:
            return handler(response)

        return after_wrapper
