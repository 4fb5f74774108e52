"""FastAPI application factory."""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from celeiro import __version__
from celeiro.config import Settings, get_settings
from celeiro.database import Database, create_database
from celeiro.domain.errors import DomainError
from celeiro.logger import get_logger
from celeiro.mailer import Mailer, create_mailer
from celeiro.system import System
from celeiro.transient.base import KeyValueStore
from celeiro.transient.factories import create_store
from celeiro.web.responses import domain_error, error, success
from celeiro.web.routes import ROUTERS
from celeiro.web.services import build_services

logger = get_logger(__name__)

_HTTP_CODES = {401: "UNAUTHORIZED", 403: "FORBIDDEN", 404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}


async def handle_domain_error(request: Request, exc: DomainError):
    return domain_error(exc)


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(e.get("type") == "json_invalid" for e in errors):
        code = "INVALID_JSON_SYNTAX"
    else:
        code = "INVALID_JSON_TYPE"
    message = "; ".join(
        f"{'.'.join(str(part) for part in e.get('loc', ()))}: {e.get('msg', '')}" for e in errors
    )
    return error(code, message or "invalid request body", 400)


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    return error(_HTTP_CODES.get(exc.status_code, "HTTP_ERROR"), str(exc.detail), exc.status_code)


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(
        "unhandled error",
        method=request.method,
        path=request.url.path,
        exc_info=exc,
    )
    return error("INTERNAL_SERVER_ERROR", "internal server error", 500)


def create_app(
    settings: Optional[Settings] = None,
    db: Optional[Database] = None,
    store: Optional[KeyValueStore] = None,
    mailer: Optional[Mailer] = None,
    system: Optional[System] = None,
) -> FastAPI:
    """Build the application.

    Any backend left as None is created from settings.

    Args:
        settings: Application settings (default: get_settings())
        db: Relational store
        store: Key/value store for codes and sessions
        mailer: Outgoing mail transport
        system: Clock and generators

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    system = system or System()
    db = db or create_database(settings)
    store = store or create_store(settings, clock=system.clock)
    mailer = mailer or create_mailer(settings)

    app = FastAPI(title=settings.SERVICE_NAME, version=__version__)
    app.state.services = build_services(settings, db, store, mailer, system)

    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    for router in ROUTERS:
        app.include_router(router)

    @app.get("/health", tags=["system"])
    def health():
        return success({"status": "ok", "version": __version__})

    @app.get("/health/ready", tags=["system"])
    def ready():
        """Readiness: the relational store answers."""
        db.ping()
        return success({"status": "ok", "database": "ok"})

    return app
