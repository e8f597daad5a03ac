import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pagechat.api.documents import router as documents_router
from pagechat.config import get_settings
from pagechat.errors import PageChatError
from pagechat.llm_provider import get_llm_status
from pagechat.logging_config import configure_logging
from pagechat.services import get_ingest_pipeline
from pagechat.telemetry import emit_app_startup_event, emit_exception

configure_logging(get_settings().log_dir)

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="PDF Page Chat API")
app.include_router(documents_router)


@app.on_event("startup")
async def _startup() -> None:
    settings = get_settings()
    settings.scratch_dir.mkdir(parents=True, exist_ok=True)
    pipeline = get_ingest_pipeline()
    emit_app_startup_event(
        image_extractor=pipeline.image_extractor.name,
        text_backend=pipeline.page_extractor.name,
    )


@app.exception_handler(PageChatError)
async def _page_chat_error_handler(request: Request, exc: PageChatError) -> JSONResponse:
    if exc.status_code >= 500:
        LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    LOGGER.info("Rejected invalid request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body."})


@app.exception_handler(StarletteHTTPException)
async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    emit_exception(module=__name__, error=exc, suggestion=f"{request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/", response_class=PlainTextResponse)
def read_root() -> str:
    """Healthcheck endpoint for the service."""
    return "ok"


@app.get("/healthz", response_class=PlainTextResponse)
def healthcheck() -> str:
    """Liveness probe used by container orchestrators."""
    return "ok"


@app.get("/healthz/llm")
def llm_healthcheck() -> dict[str, object]:
    """Expose how the chat-completion relay is configured, without calling it."""

    status = get_llm_status()
    return {
        "provider": status.provider,
        "model": status.model_name,
        "base_url": status.base_url,
        "credential_configured": status.credential_configured,
    }
