from contextlib import asynccontextmanager
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from notiproof.pipeline import __version__
from notiproof.pipeline.api.routes.admin import admin_routers
from notiproof.pipeline.api.routes.events import router as events_router
from notiproof.pipeline.api.routes.meta import router as meta_router
from notiproof.pipeline.api.routes.queue import router as queue_router
from notiproof.pipeline.config.settings import settings
from notiproof.pipeline.db.auto_seed import auto_seed
from notiproof.pipeline.engine.errors import (
    PipelineError,
    QueueBuildError,
    SourceFetchError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Pipeline errors a route did not translate itself.
_STATUS_FOR_ERROR = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (SourceFetchError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (QueueBuildError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    code = next(
        (c for cls, c in _STATUS_FOR_ERROR if isinstance(exc, cls)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc, exc.reason)
    return JSONResponse(status_code=code, content={"detail": exc.to_dict()})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: optionally seed the DB."""
    await auto_seed()
    yield


def create_app():

    load_dotenv()

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="notiproof-pipeline", version=__version__, lifespan=lifespan)

    app.add_exception_handler(PipelineError, pipeline_error_handler)

    app.include_router(meta_router)
    app.include_router(events_router)
    app.include_router(queue_router)

    for ar in admin_routers:
        app.include_router(ar, prefix="/admin", tags=["admin"])

    return app


if __name__ == "__main__":
    app = create_app()
