from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import structlog

from sqlalchemy import text

from invoicing.config import settings
from invoicing.database import init_db, close_db, get_engine
from invoicing.errors import AppError, InvalidLiteralError, ValidationFailedError
from invoicing.logging_config import setup_logging
from invoicing.middleware.correlation import CorrelationIdMiddleware

# Import models so they are registered with Base.metadata
import invoicing.models  # noqa: F401

logger = structlog.get_logger()

# pydantic error types that mean "the literal could not be parsed" rather
# than "the value was missing or out of range"
LITERAL_ERROR_TYPES = {
    "int_parsing",
    "float_parsing",
    "decimal_parsing",
    "date_parsing",
    "date_from_datetime_parsing",
    "uuid_parsing",
    "json_invalid",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("starting_invoicing", env=settings.ENVIRONMENT)
    await init_db()
    yield
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Exception handlers: every error leaves as {"error": {"code", "message"}}
# ---------------------------------------------------------------------------

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_failed", code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, str):
        detail = {"error": {"code": "HTTP_ERROR", "message": detail}}
    elif isinstance(detail, dict) and "error" not in detail:
        detail = {"error": detail}
    return JSONResponse(status_code=exc.status_code, content=detail, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors and all(err.get("type") in LITERAL_ERROR_TYPES for err in errors):
        error = InvalidLiteralError(details=_jsonable_errors(errors))
    else:
        error = ValidationFailedError("Request validation failed", details=_jsonable_errors(errors))
    return JSONResponse(status_code=error.status_code, content=error.to_body())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", error=str(exc), exc_type=type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "INTERNAL_ERROR", "message": "Unexpected error."}},
    )


def _jsonable_errors(errors) -> list[dict]:
    # ctx may hold the raw exception instance, which JSON cannot carry
    return [
        {"type": e.get("type"), "loc": list(e.get("loc", ())), "msg": e.get("msg")}
        for e in errors
    ]


app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Requested-With", "X-Request-ID"],
)


@app.get("/health", tags=["System"])
async def health(response: Response):
    health_status = {"status": "healthy", "version": settings.APP_VERSION, "checks": {}}

    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        health_status["checks"]["db"] = "ok"
    except Exception as e:
        logger.error("health_check_db_failed", error=str(e))
        health_status["checks"]["db"] = "error"
        health_status["status"] = "unhealthy"

    if health_status["status"] == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return health_status


# --- Routers ---
from invoicing.routes.invoices import router as invoices_router  # noqa: E402

app.include_router(invoices_router, prefix=settings.API_PREFIX, tags=["Invoices"])
