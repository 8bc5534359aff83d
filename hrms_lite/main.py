import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from hrms_lite.api.v1 import attendance, employees
from hrms_lite.core.config import Settings, get_settings
from hrms_lite.db.session import Database
from hrms_lite.db.startup import connect_with_retry
from hrms_lite.helpers.response import ResponseHandler, format_validation_errors

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or get_settings()
    database = database or Database(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Warm up the database before taking traffic; it may be asleep.
        connected = await connect_with_retry(
            database,
            retries=settings.DB_CONNECT_RETRIES,
            delay_ms=settings.DB_CONNECT_DELAY_MS,
        )
        if connected:
            try:
                database.create_all()
            except SQLAlchemyError:
                logger.exception("Failed to create database tables")
        else:
            logger.warning("Starting without a database connection; requests will get 503 until it is reachable.")
        yield
        database.dispose()

    app = FastAPI(title="HRMS Lite API", version="1.0", lifespan=lifespan)
    app.state.database = database

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return ResponseHandler.validation_error(format_validation_errors(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def custom_http_exception_handler(request: Request, exc: StarletteHTTPException):
        return ResponseHandler.error(str(exc.detail), exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        return ResponseHandler.from_exception(exc)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(employees.router)
    app.include_router(attendance.router)

    @app.get("/api/health", tags=["Health"])
    def health():
        return {"status": "ok", "message": "HRMS Lite API is running"}

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
