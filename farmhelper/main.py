from datetime import datetime, timezone
import logging
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from farmhelper.config import settings
from farmhelper.database import init_db, session_scope
from farmhelper.routers import ai, health, users
from farmhelper.services.otp import otp_ledger
from farmhelper.services.users import user_store

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
LOGGER = logging.getLogger(__name__)

app = FastAPI(title="FarmHelper API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(health.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(ai.router, prefix="/api")

Path(settings.audio_dir).mkdir(parents=True, exist_ok=True)
app.mount("/audio", StaticFiles(directory=settings.audio_dir), name="audio")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    ]
    LOGGER.warning("Validation error on %s: %s", request.url.path, errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request body", "errors": errors},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    LOGGER.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Something went wrong!"},
    )


@app.on_event("startup")
def startup() -> None:
    init_db()
    now = datetime.now(timezone.utc)
    with session_scope() as session:
        expired_codes = otp_ledger.purge_expired(session, now)
        stale_pending = user_store.purge_stale_pending(session, now)
    LOGGER.info(
        "FarmHelper started, purged %s expired codes and %s stale registrations",
        expired_codes,
        stale_pending,
    )


@app.get("/")
def root():
    return {"status": "Backend running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("farmhelper.main:app", host=settings.host, port=settings.port)
