import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from homescore.api.routes import internal_router, router, summary_router
from homescore.core.config import settings
from homescore.core.errors import HomeScoreError, STATUS_BY_KIND
from homescore.db import init_db
from homescore.db.session import SessionLocal, engine

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting up {settings.PROJECT_NAME}...")
    if settings.INIT_DB_ON_STARTUP:
        init_db.init_db(engine, SessionLocal)
    else:
        try:
            missing = init_db.missing_tables(engine)
            if missing:
                logger.warning(f"Missing database tables: {missing}")
                logger.warning("Run homescore-init-db before serving traffic")
        except Exception as e:
            logger.warning(f"Could not check database tables: {e}")
    yield
    logger.info(f"Shutting down {settings.PROJECT_NAME}...")


async def homescore_exception_handler(request: Request, exc: HomeScoreError):
    status_code = STATUS_BY_KIND[exc.kind]
    logger.warning(f"{exc.kind.value} ({status_code}): {exc.message} - {request.url}")
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})


def create_app() -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.include_router(router, prefix=settings.API_V1_STR)
    app.include_router(summary_router, prefix=settings.API_V1_STR)
    app.include_router(internal_router)
    app.add_exception_handler(HomeScoreError, homescore_exception_handler)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")
    return app


app = create_app()
