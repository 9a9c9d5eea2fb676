import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# Uvicorn nereden çalışırsa çalışsın .env proje kökünden yüklensin
_PROJ_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJ_ROOT / ".env")

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from gateway.api.orders import router as orders_router
from gateway.api.payments import router as payments_router
from gateway.api.seed import router as seed_router
from gateway.core.clock import utcnow
from gateway.core.config import settings
from gateway.core.database import engine, init_db
from gateway.core.errors import (
    AUTHENTICATION_ERROR,
    BAD_REQUEST_ERROR,
    INTERNAL_ERROR,
    NOT_FOUND_ERROR,
    RATE_LIMIT_ERROR,
    GatewayError,
    error_body,
)
from gateway.core.rate_limit import limiter
from gateway.logging import setup_logging
from gateway.services.merchants import seed_test_merchant
from gateway.services.settlement import build_settlement_worker

setup_logging(level=logging.INFO)
log = logging.getLogger("gateway")


def _cors_origins_list() -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if settings.seed_test_merchant:
        with Session(engine) as db:
            seed_test_merchant(db, settings)
    worker = build_settlement_worker(engine, settings)
    app.state.settlement_worker = worker
    worker.start()
    worker.recover()
    log.info(
        "Gateway started: test_mode=%s database=%s",
        settings.test_mode,
        engine.url.get_backend_name(),
    )
    yield
    # Bitmeyen settlement'lar pending_settlements tablosunda kalır; sonraki açılışta recover() alır
    app.state.settlement_worker.stop()


app = FastAPI(
    title="Payment Gateway Simulator",
    description="Sipariş, UPI/kart ödemesi ve asenkron settlement simülasyonu",
    lifespan=lifespan,
)
app.state.limiter = limiter


def _error_response(request: Request, status_code: int, code: str, description: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_body(code, description))


@app.exception_handler(GatewayError)
def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("Gateway error: path=%s code=%s description=%s", request.url.path, exc.code, exc.description)
    return _error_response(request, exc.status_code, exc.code, exc.description)


def _validation_error_message(exc: RequestValidationError) -> str:
    errs = exc.errors()
    if not errs:
        return "Invalid request"
    first = errs[0]
    loc = [str(p) for p in (first.get("loc") or []) if p != "body"]
    field = ".".join(loc)
    if first.get("type") == "missing":
        return f"{field} is required" if field else "Request body is required"
    msg = first.get("msg") or "invalid value"
    return f"{field}: {msg}" if field else msg


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    log.info(
        "Request validation error: path=%s method=%s detail=%s",
        request.url.path,
        request.method,
        exc.errors(),
    )
    return _error_response(request, 400, BAD_REQUEST_ERROR, _validation_error_message(exc))


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    log.warning("Rate limit exceeded: path=%s", request.url.path)
    return _error_response(request, 429, RATE_LIMIT_ERROR, "Too many requests")


app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        code = NOT_FOUND_ERROR
    elif exc.status_code == 401:
        code = AUTHENTICATION_ERROR
    elif exc.status_code >= 500:
        code = INTERNAL_ERROR
    else:
        code = BAD_REQUEST_ERROR
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error_response(request, exc.status_code, code, detail)


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc, exc_info=True)
    # İç detay istemciye sızdırılmaz
    return JSONResponse(status_code=500, content=error_body(INTERNAL_ERROR, "Internal server error"))


@app.middleware("http")
async def request_id_and_latency(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    log.info(
        "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins_list(),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Api-Key", "X-Api-Secret"],
)
app.include_router(orders_router)
app.include_router(payments_router)
app.include_router(seed_router)


@app.get("/health")
def health(request: Request):
    worker = getattr(request.app.state, "settlement_worker", None)
    worker_status = "running" if worker is not None and worker.is_running else "stopped"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        log.warning("Health check database error: %s", e)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "disconnected", "worker": worker_status},
        )
    return {
        "status": "healthy",
        "database": "connected",
        "worker": worker_status,
        "pending_settlements": worker.pending_count() if worker is not None else 0,
        "timestamp": utcnow().isoformat() + "Z",
    }
