import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rosterai.api.routes import schedule_runs, schedule_recommendations
from rosterai.core.config import settings
from rosterai.core.logging_config import configure_logging
from rosterai.db.database import engine
from rosterai.db.models import Base
from rosterai.services.scheduling.errors import SchedulingError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="RosterAI API", version="0.1.0", debug=settings.DEBUG, lifespan=lifespan)

    @app.exception_handler(SchedulingError)
    async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} [{exc.error_code}] {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    app.include_router(schedule_runs.router, prefix="/api/v1")
    app.include_router(schedule_recommendations.router, prefix="/api/v1")

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()
