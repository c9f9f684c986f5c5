"""
TranslateMD - FastAPI Main Application
"""

import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, Depends, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from translatemd.config import settings
from translatemd.core.errors import MissingFieldsError, MissingServerSecretError, ProxyError
from translatemd.core.logging import setup_logging, get_logger, audit_logger
from translatemd.core.security import security_manager
from translatemd.models.requests import LanguageDetectionRequest, TranslationRequest
from translatemd.models.responses import (
    HealthCheckResponse, ErrorResponse, RateLimitResponse,
    TranscriptionResult, TranslationResult, LanguageDetectionResult
)
from translatemd.services.audio_processor import AudioProcessor
from translatemd.services.credential_broker import CredentialBroker
from translatemd.services.llm_service import LLMService
from translatemd.services.stt_service import STTService
from translatemd.services.upstream import UpstreamClient

# Initialize logging
setup_logging()
logger = get_logger(__name__)

# Prometheus metrics
request_count = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
request_duration = Histogram('http_request_duration_seconds', 'HTTP request duration')

# Rate limiter
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
rate_limit = f"{settings.rate_limit_requests}/minute"

# Shared upstream client (holds the long-lived secret)
upstream_client = UpstreamClient.from_settings(settings)
audio_processor = AudioProcessor()

started_at = time.time()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# --- Dependencies ---
def get_upstream() -> UpstreamClient:
    return upstream_client


def get_credential_broker(upstream: UpstreamClient = Depends(get_upstream)) -> CredentialBroker:
    return CredentialBroker(upstream)


def get_stt_service(upstream: UpstreamClient = Depends(get_upstream)) -> STTService:
    return STTService(upstream, audio_processor)


def get_llm_service(upstream: UpstreamClient = Depends(get_upstream)) -> LLMService:
    return LLMService(upstream)

# --------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("🚀 TranslateMD proxy starting...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"API Version: {settings.api_version}")

    yield

    await upstream_client.aclose()
    logger.info("🛑 TranslateMD proxy shutting down...")


# Create FastAPI app
app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url="/redoc" if settings.environment == "development" else None,
    debug=settings.debug,
    servers=[
        {"url": f"http://localhost:{settings.api_port}", "description": "Local development"},
    ]
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Rate limiting
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)
    if "X-Content-Type-Options" not in response.headers:
        response.headers["X-Content-Type-Options"] = "nosniff"
    if "X-Frame-Options" not in response.headers:
        response.headers["X-Frame-Options"] = "DENY"
    if "Cache-Control" not in response.headers:
        # Credentials and clinical text must not be cached by intermediaries
        response.headers["Cache-Control"] = "no-store"
    return response


@app.middleware("http")
async def track_requests(request: Request, call_next):
    """Request tracking and Prometheus metrics"""

    start_time = time.time()
    request_id = security_manager.generate_request_id()

    request.state.request_id = request_id
    request.state.start_time = start_time

    audit_logger.log_api_request(
        request_id=request_id,
        endpoint=request.url.path,
        method=request.method,
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )

    try:
        response = await call_next(request)

        duration = time.time() - start_time
        request_count.labels(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code
        ).inc()
        request_duration.observe(duration)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time"] = f"{duration:.3f}s"

        return response

    except Exception as e:
        request_count.labels(
            method=request.method,
            endpoint=request.url.path,
            status=500
        ).inc()

        logger.error(f"Request {request_id} failed: {e}")
        audit_logger.log_error(
            request_id=request_id,
            error_type=type(e).__name__,
            error_message=str(e),
            stack_trace=traceback.format_exc(),
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An internal error occurred",
                "request_id": request_id,
                "timestamp": datetime.utcnow().isoformat()
            },
            headers={"X-Request-ID": request_id}
        )


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


@app.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Service health check"""

    return HealthCheckResponse(
        status="ok",
        timestamp=datetime.utcnow(),
        version=settings.api_version,
        uptime_seconds=int(time.time() - started_at)
    )


@app.get(settings.metrics_path)
async def metrics():
    """Prometheus metrics"""
    if not settings.enable_metrics:
        raise HTTPException(status_code=404, detail="Metrics disabled")

    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.post("/session", responses=ERROR_RESPONSES)
@limiter.limit(rate_limit)
async def create_session(
    request: Request,
    broker: CredentialBroker = Depends(get_credential_broker),
) -> Dict[str, Any]:
    """Issues a short-lived realtime session credential (client_secret.value)."""
    return await broker.issue_session_credential(request_id=_request_id(request))


@app.post(
    "/transcribe",
    response_model=TranscriptionResult,
    responses={**ERROR_RESPONSES, 413: {"model": ErrorResponse}},
)
@limiter.limit(rate_limit)
async def transcribe_audio(
    request: Request,
    stt_service: STTService = Depends(get_stt_service),
):
    """Transcribes a raw audio body (Content-Type audio/*)."""
    content_type = request.headers.get("content-type")
    stt_service.upstream.require_api_key()
    # Non-audio bodies are not read, so they count as missing audio
    audio_data = b""
    if stt_service.audio_processor.is_audio_content_type(content_type):
        audio_data = await stt_service.audio_processor.read_limited(
            request.stream(), request.headers.get("content-length")
        )

    return await stt_service.transcribe(
        audio_data,
        content_type=content_type,
        request_id=_request_id(request),
    )


@app.post("/translate", response_model=TranslationResult, responses=ERROR_RESPONSES)
@limiter.limit(rate_limit)
async def translate_text(
    request: Request,
    payload: Optional[TranslationRequest] = None,
    llm_service: LLMService = Depends(get_llm_service),
):
    """Translates text, detecting the source language when `from` is absent or "auto"."""
    payload = payload or TranslationRequest()
    return await llm_service.translate(
        payload.text,
        payload.source_language,
        payload.target_language,
        request_id=_request_id(request),
    )


@app.post("/detect-language", response_model=LanguageDetectionResult, responses=ERROR_RESPONSES)
@limiter.limit(rate_limit)
async def detect_language(
    request: Request,
    payload: Optional[LanguageDetectionRequest] = None,
    llm_service: LLMService = Depends(get_llm_service),
):
    """Identifies the language of a text."""
    payload = payload or LanguageDetectionRequest()
    return await llm_service.detect_language(payload.text, request_id=_request_id(request))


@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError):
    """Renders domain errors; upstream errors keep the upstream status and body"""

    request_id = _request_id(request) or "unknown"
    logger.warning(f"Request {request_id} failed with {exc.error_type} ({exc.status_code}): {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.body,
        headers={"X-Request-ID": request_id}
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed or mistyped bodies count as missing fields, after the secret check"""

    upstream = app.dependency_overrides.get(get_upstream, get_upstream)()
    if not upstream.is_configured:
        error = MissingServerSecretError()
    elif request.url.path == "/detect-language":
        error = MissingFieldsError("text")
    else:
        error = MissingFieldsError("text", "to")

    logger.debug(f"Request validation failed on {request.url.path}: {exc.errors()}")
    return await proxy_error_handler(request, error)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Custom rate limit error handler"""

    response = RateLimitResponse(
        message="Too many requests. Please try again later.",
        retry_after=settings.rate_limit_window,
        limit=settings.rate_limit_requests,
        window=settings.rate_limit_window,
        timestamp=datetime.utcnow()
    )

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=response.model_dump(mode="json"),
        headers={"Retry-After": str(settings.rate_limit_window)}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors"""

    request_id = _request_id(request) or "unknown"

    audit_logger.log_error(
        request_id=request_id,
        error_type=type(exc).__name__,
        error_message=str(exc),
        stack_trace=traceback.format_exc(),
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
            "request_id": request_id,
            "timestamp": datetime.utcnow().isoformat()
        },
        headers={"X-Request-ID": request_id}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "translatemd.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development"
    )
