import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings
from .database import create_db_engine, create_session_factory, init_db
from .errors import StorefrontError, ValidationError
from .messaging.producer import build_producer
from .routers import admin, orders, products

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Something went wrong! Please try again later."


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(settings: Settings = None, publisher=None) -> FastAPI:
    """Build the storefront application.

    Run with ``uvicorn --factory storefront.main:create_app``.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    engine = create_db_engine(settings.database_url)
    # Create database tables on startup if they don't exist.
    init_db(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.publisher.close()
        engine.dispose()

    app = FastAPI(title="Storefront Order Service", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.publisher = publisher if publisher is not None else build_producer(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(orders.router)
    app.include_router(admin.router)
    app.include_router(products.router)

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {"message": "Storefront order service is running"}

    return app


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
            return _error_response(500, INTERNAL_ERROR)
        body = {"success": False, "message": exc.message}
        if isinstance(exc, ValidationError) and exc.field:
            body["field"] = exc.field
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        problems = []
        for err in exc.errors():
            location = ".".join(str(part) for part in err["loc"] if part not in ("body", "query", "path"))
            problems.append({"field": location, "message": err["msg"]})
        summary = "; ".join(f"{p['field']}: {p['message']}" if p["field"] else p["message"] for p in problems)
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": f"Invalid input data. {summary}", "errors": problems},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
        return _error_response(500, INTERNAL_ERROR)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return _error_response(500, INTERNAL_ERROR)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})
