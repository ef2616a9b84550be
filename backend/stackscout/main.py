"""
StackScout Backend
FastAPI application that detects the technology stack of hosted repositories.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stackscout.analyzer import RepoAnalyzer, build_response
from stackscout.catalog import load_catalog
from stackscout.config import Settings, get_platform_token
from stackscout.errors import AnalysisError, AuthError, InternalError, RateLimitError, ValidationError
from stackscout.platforms import PLATFORM_ADAPTERS
from stackscout.rate_limiter import CallerRateLimiter
from stackscout.schemas import AnalyzeRequest, AnalyzeResponse, PlatformInfo, ProblemDetail

VERSION = "1.0.0"
PROBLEM_MEDIA_TYPE = "application/problem+json"

PROBLEM_RESPONSES = {
    status: {"model": ProblemDetail, "description": description}
    for status, description in (
        (400, "Missing or unsupported repository URL"),
        (401, "Caller identity missing"),
        (403, "The hosting platform requires an access token"),
        (429, "Caller is analyzing repositories too quickly"),
        (500, "Repository not found, platform failure or internal error"),
    )
}

settings = Settings.from_env()

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the rule catalog before serving traffic."""
    rules = load_catalog(settings.rules_path)
    logger.info(f"StackScout starting up with {len(rules)} technology rules...")
    yield
    logger.info("StackScout shutting down...")


app = FastAPI(
    title="StackScout",
    description="Detects the technology stack of repositories on common hosting platforms",
    version=VERSION,
    lifespan=lifespan,
)

# Configure CORS for frontend communication
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services
analyzer = RepoAnalyzer.from_settings(settings)
rate_limiter = CallerRateLimiter(cooldown_seconds=settings.rate_limit_seconds)


def problem_response(error: AnalysisError) -> JSONResponse:
    headers = {}
    if isinstance(error, RateLimitError):
        headers["Retry-After"] = str(error.retry_after)
    return JSONResponse(
        status_code=error.status,
        content=error.to_problem(),
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers,
    )


async def require_caller(x_caller_id: Optional[str] = Header(None)) -> str:
    """Caller identity set by the upstream authentication layer."""
    if not x_caller_id or not x_caller_id.strip():
        raise AuthError("Authentication required")
    return x_caller_id.strip()


def platform_listing() -> List[PlatformInfo]:
    return [
        PlatformInfo(
            platform=adapter.platform,
            name=adapter.name,
            token_env_var=adapter.token_env_var,
            has_server_token=get_platform_token(adapter.token_env_var) is not None,
        )
        for adapter in PLATFORM_ADAPTERS.values()
    ]


@app.get("/")
async def root():
    """Liveness endpoint."""
    return {"message": "StackScout is running"}


@app.get("/health")
async def health_check():
    """
    Health information for monitoring.

    Reports the size of the technology catalog and which platforms have a
    server-side credential configured.
    """
    health_status = {
        "status": "healthy",
        "service": "stackscout",
        "timestamp": datetime.now().isoformat(),
        "version": VERSION,
        "checks": {},
    }

    try:
        rules = load_catalog(settings.rules_path)
        health_status["checks"]["catalog"] = {"status": "healthy", "rules": len(rules)}
    except Exception as e:
        logger.error(f"Catalog health check failed: {e}")
        health_status["checks"]["catalog"] = {"status": "unhealthy", "error": str(e)}
        health_status["status"] = "degraded"

    health_status["checks"]["platforms"] = {
        info.platform.value: {"name": info.name, "hasServerToken": info.has_server_token}
        for info in platform_listing()
    }
    return health_status


@app.get("/api/repo/platforms", response_model=List[PlatformInfo], response_model_by_alias=True)
async def list_platforms():
    """Supported hosting platforms and their credential variables."""
    return platform_listing()


@app.post(
    "/api/repo/analyze",
    response_model=AnalyzeResponse,
    response_model_by_alias=True,
    responses=PROBLEM_RESPONSES,
)
async def analyze_repository(request: AnalyzeRequest, caller_id: str = Depends(require_caller)):
    """
    Detect the technology stack of one repository.

    The caller is subject to a per-identity cooldown. All failures are
    returned as problem+json bodies.
    """
    await rate_limiter.check(caller_id)
    result = await analyzer.analyze(request.url, request.token)
    return build_response(result, request.url)


# Error handlers
@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    if exc.status >= 500:
        logger.error(f"Analysis failed for {request.url.path}: {exc.message}")
    else:
        logger.info(f"Request rejected for {request.url.path} ({exc.status}): {exc.message}")
    return problem_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are a 400 problem, not FastAPI's default 422."""
    errors = exc.errors()
    if any(tuple(err.get("loc", ()))[-1:] == ("url",) for err in errors):
        detail = "Repository URL is required"
    else:
        detail = "Invalid request body"
    logger.info(f"Request validation failed for {request.url.path}: {errors}")
    return problem_response(ValidationError(detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error for {request.url.path}: {exc}", exc_info=True)
    return problem_response(InternalError())


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
