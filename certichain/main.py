# certichain/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import IntegrityError
from starlette.requests import Request

from certichain.api.deps import close_clients
from certichain.api.v1.router import api_router
from certichain.core.config import settings
from certichain.core.errors import CertichainError
from certichain.core.idempotency import IdempotencyMiddleware
from certichain.core.logging import setup_logging
from certichain.db.bootstrap import run_migrations

setup_logging()
logger = logging.getLogger("certichain.api")

api = FastAPI(
    title="Certichain - Certificate Registry API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    swagger_ui_parameters={"displayRequestDuration": True, "persistAuthorization": True},
)

api.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
api.add_middleware(IdempotencyMiddleware)

# /metrics (Prometheus); the certichain_* counters land on the same registry
Instrumentator().instrument(api).expose(api, include_in_schema=False, should_gzip=True)

api.include_router(api_router, prefix="/api/v1")


@api.get("/healthz", tags=["health"])
def healthz():
    return {"status": "ok"}


@api.on_event("startup")
def startup():
    run_migrations()


@api.on_event("shutdown")
async def shutdown():
    await close_clients()


@api.exception_handler(CertichainError)
def handle_certichain_error(request: Request, exc: CertichainError):
    # full reason goes to the log only
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.detail)
    details = {"field": exc.field} if getattr(exc, "field", None) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "message": exc.public_message(settings.ERROR_DETAIL_MAX_CHARS), "details": details},
    )


@api.exception_handler(IntegrityError)
def handle_integrity_error(request: Request, exc: IntegrityError):
    return JSONResponse(
        status_code=409,
        content={"code": "UNIQUE_VIOLATION", "message": "Duplicate record.", "details": None},
    )


@api.exception_handler(Exception)
def handle_unexpected(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"code": "INTERNAL_ERROR", "message": "Internal error.", "details": None},
    )
