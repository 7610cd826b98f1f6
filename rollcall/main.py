"""Rollcall - FastAPI entrypoint."""
import logging
from contextlib import asynccontextmanager

from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pymongo.errors import ServerSelectionTimeoutError

from rollcall.config import settings
from rollcall.db import db_shutdown, db_startup
from rollcall.services.firebase import get_firebase_app
from rollcall.api import attendance, auth, live, pages

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if get_firebase_app() is None:
        raise RuntimeError(
            "Firebase could not be initialised. Check FIREBASE_CREDENTIALS_PATH points to a service account JSON."
        )
    try:
        await db_startup()
    except ServerSelectionTimeoutError as e:
        logger.error(
            "MongoDB is not running. Start a replica set (change streams need one), e.g. docker compose up -d"
        )
        raise RuntimeError(
            "MongoDB connection failed. Start MongoDB (e.g. docker compose up -d)."
        ) from e
    yield
    await db_shutdown()


app = FastAPI(
    title=settings.app_name,
    description="Attendance submission with a live, timestamp-ordered attendance table",
    version="0.1.0",
    lifespan=lifespan,
)


def _jsonable_errors(errors):
    # ValueErrors raised in validators land in "ctx" and are not JSON serialisable
    return [
        {**err, "ctx": {k: str(v) for k, v in err["ctx"].items()}} if "ctx" in err else err
        for err in errors
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": _jsonable_errors(errors)},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(attendance.router, prefix="/api/attendance", tags=["Attendance"])
app.include_router(live.router)
app.include_router(pages.router)


# Serve static files (page script, styles, placeholder images)
_static_dir = Path(__file__).resolve().parent.parent / "static"
if _static_dir.is_dir():
    app.mount("/static", StaticFiles(directory=str(_static_dir)), name="static")


@app.get("/health")
def health():
    return {"status": "ok", "app": settings.app_name}
