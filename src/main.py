"""
Reality Auditor Service - scoring and caching API
Audits article text for truth, bias and manipulation with cached results
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Optional, Tuple
from datetime import datetime, timezone
from contextlib import asynccontextmanager
import logging
import os

import redis.asyncio as redis
from dotenv import load_dotenv

from realityaudit.auditor import AuditInputError, RealityAuditor
from realityaudit.cache import ResultCache
from realityaudit.config import Settings, get_settings
from realityaudit.models import AuditRequest, AuditResponse
from realityaudit.providers import AuditProviderError, OpenAIAuditAnalyzer, TavilySearchClient


# Logging configuration
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler('logs/realityaudit.log') if os.path.exists('logs') else logging.NullHandler()
    ]
)

logger = logging.getLogger(__name__)

# Load environment variables early so Settings picks them up
load_dotenv()

VERSION = "1.0.0"
TITLE = "Reality Auditor Service"
DESCRIPTION = "Truth scoring, bias detection and cached audit results"
CAPABILITIES = [
    "multi-lens analysis",
    "bias detection",
    "manipulation identification",
    "fact verification",
    "citation validation",
    "content caching",
]


class UnconfiguredAnalyzer:
    """Analyzer used when no model API key is configured; always degrades."""

    async def analyze(self, content, metadata, citations):
        raise AuditProviderError("Analysis model client not initialized - missing API key")


def classify_failure(exc: Exception) -> Tuple[int, str]:
    """Map an audit failure to an HTTP status and a readable message."""
    if isinstance(exc, (AuditInputError, ValueError)):
        return status.HTTP_400_BAD_REQUEST, str(exc) or "Invalid input format. Please check your content."
    message = str(exc)
    if "validation" in message or "parse" in message:
        return status.HTTP_400_BAD_REQUEST, "Invalid input format. Please check your content."
    if "timeout" in message or "network" in message:
        return (
            status.HTTP_408_REQUEST_TIMEOUT,
            "Analysis timed out. Please try with shorter content or try again later.",
        )
    if "API" in message or "key" in message:
        return (
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Service temporarily unavailable. Please try again later.",
        )
    return (
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Analysis failed. Please try again or contact support if the issue persists.",
    )


async def connect_primary_store(settings: Settings) -> Optional[redis.Redis]:
    """Attempt Redis connection; None means the memory tier serves alone"""
    if not settings.redis_url:
        logger.warning("REDIS_URL not set, using in-memory cache only")
        return None
    client = redis.from_url(settings.redis_url, decode_responses=True, socket_connect_timeout=5)
    try:
        await client.ping()
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}. Using in-memory cache")
        await client.aclose()
        return None
    logger.info("Redis connected successfully")
    return client


def build_auditor(settings: Settings, primary: Optional[redis.Redis] = None) -> RealityAuditor:
    if settings.openai_api_key:
        analyzer = OpenAIAuditAnalyzer(
            settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            timeout=settings.openai_timeout,
        )
    else:
        logger.warning("OPENAI_API_KEY not set, audits will use the fallback analysis")
        analyzer = UnconfiguredAnalyzer()
    searcher = (
        TavilySearchClient(settings.tavily_api_key, max_results=settings.tavily_max_results)
        if settings.tavily_api_key
        else None
    )
    cache = ResultCache(primary=primary, ttl=settings.cache_ttl_seconds)
    return RealityAuditor(analyzer=analyzer, cache=cache, searcher=searcher, settings=settings)


# Application lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("=" * 60)
    logger.info(f"Starting {TITLE} v{VERSION}")
    logger.info("=" * 60)

    settings = get_settings()
    primary = await connect_primary_store(settings)
    app.state.auditor = build_auditor(settings, primary)
    logger.info("Service ready")

    yield

    logger.info("Shutting down...")
    if primary is not None:
        await primary.aclose()
    logger.info("Shutdown complete")


# FastAPI application
app = FastAPI(
    title=TITLE,
    version=VERSION,
    description=DESCRIPTION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Reject malformed audit requests with a 400"""
    detail = "; ".join(str(error.get("msg", "")) for error in exc.errors()) or "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Missing content or URL", "detail": detail},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": str(exc) if os.getenv("DEBUG") else "An error occurred"
        }
    )


def _status_payload():
    return {
        "status": "healthy",
        "service": "reality-auditor",
        "version": VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "capabilities": CAPABILITIES,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return _status_payload()


@app.get("/reality-audit")
async def reality_audit_status():
    """Service information for the audit endpoint"""
    return _status_payload()


@app.post("/reality-audit", response_model=AuditResponse, response_model_by_alias=True)
async def reality_audit(request_body: AuditRequest, http_request: Request):
    """Run (or serve from cache) a reality audit for the submitted article"""
    auditor: RealityAuditor = http_request.app.state.auditor
    try:
        return await auditor.audit(request_body)
    except Exception as exc:
        status_code, message = classify_failure(exc)
        logger.error(f"Reality audit failed ({status_code}): {exc}")
        return JSONResponse(status_code=status_code, content={"error": message})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8001")),
        log_level="info"
    )
