"""FastAPI application entry point for the Kometa Studio server."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kometa_studio.core.db import Base, engine, ensure_database_directory
from kometa_studio.core.errors import DecryptionError, MasterKeyError, ParseError, ShapeError
from kometa_studio.core.schemas import HealthOut
from kometa_studio.security.envelope import validate_master_key
from kometa_studio.settings import settings
from kometa_studio.util.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _check_master_key() -> None:
    """Refuse to start without a usable master key."""
    if not validate_master_key(settings.MASTER_KEY):
        raise MasterKeyError(
            "KOMETA_STUDIO_MASTER_KEY must be the base64 encoding of 32 bytes; "
            "generate one with `kometa-studio-keygen`"
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler: logging, key check, schema creation."""
    setup_logging(settings.LOG_LEVEL)
    _check_master_key()
    ensure_database_directory(settings.DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    logger.info("Kometa Studio ready (database %s)", engine.url.render_as_string(hide_password=True))
    yield


app = FastAPI(
    title="Kometa Studio",
    description="Edit Kometa configurations and keep their credentials encrypted in separate profiles.",
    version="1.0.0",
    lifespan=lifespan,
)

# -- CORS ---------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -- Errors -------------------------------------------------------------------


@app.exception_handler(ParseError)
async def parse_error_handler(request: Request, exc: ParseError) -> JSONResponse:
    logger.info("Rejected document on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message, "line": exc.line, "column": exc.column},
    )


@app.exception_handler(ShapeError)
async def shape_error_handler(request: Request, exc: ShapeError) -> JSONResponse:
    logger.warning("Shape violation on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=422,
        content={
            "detail": [{"loc": list(path), "msg": message} for path, message in exc.issues],
        },
    )


@app.exception_handler(DecryptionError)
async def decryption_error_handler(request: Request, exc: DecryptionError) -> JSONResponse:
    logger.error("Could not open stored credentials on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Stored credentials could not be decrypted; check KOMETA_STUDIO_MASTER_KEY"},
    )


# -- Routers ------------------------------------------------------------------

from kometa_studio.configs.routes import router as configs_router  # noqa: E402
from kometa_studio.profiles.routes import router as profiles_router  # noqa: E402

app.include_router(configs_router)
app.include_router(profiles_router)


# -- Health check -------------------------------------------------------------

@app.get("/health", response_model=HealthOut, tags=["health"])
def health_check() -> HealthOut:
    """Simple liveness probe."""
    return HealthOut(status="ok", timestamp=datetime.now(timezone.utc))


def run() -> None:
    """Entry point for the ``kometa-studio`` console script."""
    import uvicorn

    uvicorn.run("kometa_studio.main:app", host=settings.HOST, port=settings.PORT)
