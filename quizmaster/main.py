import logging
import traceback
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from quizmaster.api.router import api_router
from quizmaster.core.config import settings, validate_settings
from quizmaster.core.dependencies import get_document_store
from quizmaster.core.exceptions import QuizMasterError
from quizmaster.core.logging import setup_logging
from quizmaster.core.metrics import PrometheusMiddleware, metrics_response
from quizmaster.core.middleware import RequestLoggingMiddleware
from quizmaster.core.rate_limit import limiter
from quizmaster.core.sentry import init_sentry

# Configure logging before anything else
setup_logging()
init_sentry()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings()
    get_document_store().ensure_root()
    logger.info(
        "Starting QuizMaster (gemini keys=%d, analysis model=%s)",
        len(settings.gemini_key_list),
        settings.openrouter_model,
    )

    yield

    logger.info("QuizMaster shut down")


app = FastAPI(
    title="QuizMaster",
    description="Turn PDFs into topic lists and multiple-choice quizzes, and analyze wrong answers",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.app_debug else None,
    redoc_url="/api/redoc" if settings.app_debug else None,
)


@app.exception_handler(QuizMasterError)
async def _quizmaster_error_handler(request: Request, exc: QuizMasterError):
    content = {"success": False, "error": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


# Log unhandled exceptions with the full traceback
@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "details": f"{type(exc).__name__}: {exc}"},
    )


# Bodies that do not even parse into the request model are caller errors too
@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Invalid request parameters.", "details": details},
    )


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded):
    response = JSONResponse(
        status_code=429,
        content={"success": False, "error": "Too many requests. Please try again later.", "details": exc.detail},
    )
    return request.app.state.limiter._inject_headers(response, getattr(request.state, "view_rate_limit", None))


# Rate limiter
app.state.limiter = limiter

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(PrometheusMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origin_list,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()


if __name__ == "__main__":
    uvicorn.run("quizmaster.main:app", host=settings.app_host, port=settings.app_port)
