import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lawton.api.routes import router as content_router
from lawton.config import get_settings
from lawton.errors import LawtonError, MethodNotAllowedError
from lawton.logging_config import configure_logging
from lawton.telemetry import emit_app_startup_event

_settings = get_settings()
configure_logging(_settings.log_dir, _settings.log_level)

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="Lawton Content API")
app.include_router(content_router)


@app.on_event("startup")
async def _startup() -> None:
    emit_app_startup_event()


@app.exception_handler(LawtonError)
async def _lawton_error_handler(request: Request, exc: LawtonError) -> JSONResponse:
    if exc.status_code >= 500:
        LOGGER.error("Request to %s failed: %s", request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(StarletteHTTPException)
async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        allow = (exc.headers or {}).get("Allow", "POST")
        return await _lawton_error_handler(request, MethodNotAllowedError(allow=allow))
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
        for error in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})


@app.get("/", response_class=PlainTextResponse)
def read_root() -> str:
    """Healthcheck endpoint for the service."""
    return "ok"


@app.get("/healthz", response_class=PlainTextResponse)
def healthcheck() -> str:
    """Liveness probe used by container orchestrators."""
    return "ok"
