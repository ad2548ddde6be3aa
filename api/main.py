from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException

from core import db, migrations
from core.config import Settings, load_settings
from core.log import configure_logging, get_logger
from songs import router as songs_router
from songs.service import SongService

logger = get_logger("song_library")


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        parts.append(f"{location}: {error.get('msg', 'invalid value')}" if location else str(error.get("msg")))
    return "Invalid request: " + "; ".join(parts)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level, settings.log_file)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        # Initialize the DB pool once per process; a failed migration aborts startup.
        await db.init_pool(settings)
        try:
            await db.ping()
            if settings.run_migrations:
                await migrations.run_migrations(settings.migrations_path)
            logger.info("server_ready address=%s", settings.server_address)
            yield
        finally:
            await db.close_pool()

    app = FastAPI(title="Song Library API", lifespan=lifespan)
    app.state.settings = settings
    app.state.song_service = SongService(
        enrichment_base_url=settings.api_url,
        enrichment_timeout_s=settings.api_timeout_s,
        logger=get_logger("songs"),
    )

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException) -> PlainTextResponse:
        if exc.status_code >= 500:
            logger.error(
                "request_failed method=%s path=%s status=%s detail=%s",
                request.method,
                request.url.path,
                exc.status_code,
                exc.detail,
            )
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> PlainTextResponse:
        message = _validation_message(exc)
        logger.warning("request_invalid method=%s path=%s detail=%s", request.method, request.url.path, message)
        return PlainTextResponse(message, status_code=status.HTTP_400_BAD_REQUEST)

    app.include_router(songs_router.router, tags=["songs"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return "Server is running"

    return app


app = create_app()


def run() -> None:
    settings = app.state.settings
    uvicorn.run(app, host=settings.server_host, port=settings.server_port)


if __name__ == "__main__":
    run()
