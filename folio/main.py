"""folio-cms-api - content management API powered by Robyn."""

from robyn import Robyn

from folio.api.health import router as health_router
from folio.api.upload import router as upload_router
from folio.core.logger import LogIcon, logger
from folio.core.settings import settings as st
from folio.middlewares.base import MiddlewareHandler
from folio.middlewares.files import FileUploadOpenAPIMiddleware, RequestSizeLimitMiddleware
from folio.middlewares.request_id import RequestIdMiddleware

app = Robyn(__file__)

# Routers
app.include_router(health_router)
app.include_router(upload_router)

# Middlewares (after routers, so endpoint hooks are bound to each route's methods)
middlewares = MiddlewareHandler(app)
middlewares.register(RequestIdMiddleware)
middlewares.register(RequestSizeLimitMiddleware)
middlewares.register(FileUploadOpenAPIMiddleware)


def main() -> None:
    logger.info(f"Starting {st.API_NAME} | host={st.API_HOST} | port={st.API_PORT}", icon=LogIcon.START)
    app.start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
