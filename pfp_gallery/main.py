"""
FastAPI application entry point.
Application factory with middleware, exception handlers, routes and static serving.
"""
from fastapi import FastAPI, Request, Response, status, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Optional
import logging
import asyncio

from pfp_gallery.config import Settings, settings as default_settings
from pfp_gallery.database import create_engine_from_url, create_session_factory, get_db, init_db, close_db
from pfp_gallery.routes import pfps, uploads
from pfp_gallery.schemas import ErrorResponse
from pfp_gallery.services.upload_store import PUBLIC_PREFIX, UploadStore
from pfp_gallery.utils.auth import ADMIN_HEADER, AdminAuthorizer, build_authorizer

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", ADMIN_HEADER]
ENTRY_PAGE = "index.html"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def add_cors_headers(response: Response) -> Response:
    """
    Add CORS headers to responses produced outside CORSMiddleware
    (error responses and bare OPTIONS requests).
    """
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = ",".join(ALLOWED_METHODS)
    response.headers["Access-Control-Allow-Headers"] = ",".join(ALLOWED_HEADERS)
    return response


def error_response(status_code: int, message: str) -> JSONResponse:
    response = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )
    return add_cors_headers(response)


def create_app(
    app_settings: Optional[Settings] = None,
    authorizer: Optional[AdminAuthorizer] = None,
) -> FastAPI:
    """
    Build the application from explicit configuration.

    Args:
        app_settings: Settings to use (defaults to the environment-loaded settings)
        authorizer: Admin gate strategy (defaults to one built from the settings)

    Returns:
        FastAPI: Configured application; engine, session factory, upload store
        and authorizer are available on app.state
    """
    app_settings = app_settings or default_settings

    app = FastAPI(
        title=app_settings.API_TITLE,
        description=app_settings.API_DESCRIPTION,
        version=app_settings.API_VERSION,
    )

    engine = create_engine_from_url(app_settings.DATABASE_URL)
    upload_store = UploadStore(app_settings.upload_path, app_settings.MAX_UPLOAD_BYTES)
    # The uploads directory must exist before StaticFiles is mounted on it
    upload_store.ensure_directory()

    app.state.settings = app_settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.upload_store = upload_store
    app.state.authorizer = authorizer or build_authorizer(app_settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=False,  # Must be False when using wildcard origin
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
    )

    # Request logging middleware, added after CORSMiddleware so it wraps it:
    # every OPTIONS request, pre-flight or bare, gets an empty 200 here
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        method = request.method
        path = request.url.path

        if method == "OPTIONS":
            logger.debug(f"OPTIONS request to {path}")
            return add_cors_headers(Response(status_code=status.HTTP_200_OK))

        try:
            response = await call_next(request)
            logger.info(f"Response status: {response.status_code} for {method} {path}")
            return response
        except Exception as e:
            logger.error(
                f"Error processing {method} {path}: {str(e)}\n"
                f"  Error type: {type(e).__name__}",
                exc_info=True
            )
            raise

    # Exception Handlers
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions (400, 401, 404, 500, ...) as ok=false envelopes."""
        log = logger.error if exc.status_code >= 500 else logger.info
        log(f"HTTPException on {request.method} {request.url.path}: {exc.status_code} {exc.detail}")
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors (malformed bodies, bad field types)."""
        logger.warning(
            f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
        )
        errors = exc.errors()
        message = errors[0].get("msg", "Validation error") if errors else "Validation error"
        return error_response(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle anything else as a 500 carrying the underlying message."""
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: "
            f"{type(exc).__name__}: {str(exc)}",
            exc_info=True
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    # API routes
    app.include_router(pfps.router, prefix="/api")
    app.include_router(uploads.router, prefix="/api")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"ok": True, "status": "healthy"}

    @app.get("/health/db")
    async def health_check_db(db: AsyncSession = Depends(get_db)):
        """
        Database health check endpoint.
        Tests database connection and returns status.
        """
        try:
            await db.execute(text("SELECT 1"))
            return {"ok": True, "database": "connected"}
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}", exc_info=True)
            await db.rollback()
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"ok": False, "database": "error", "error": str(e)},
            )

    # Uploaded files are publicly readable
    app.mount(PUBLIC_PREFIX, StaticFiles(directory=str(upload_store.directory)), name="uploads")

    public_root = app_settings.public_path

    @app.get("/{full_path:path}", include_in_schema=False)
    async def serve_frontend(full_path: str):
        """
        Serve a file from the frontend bundle, falling back to the entry page
        so client-side routes resolve.
        """
        candidate = (public_root / full_path).resolve()
        if full_path and candidate.is_file() and candidate.is_relative_to(public_root):
            return FileResponse(candidate)

        entry_page = public_root / ENTRY_PAGE
        if entry_page.is_file():
            return FileResponse(entry_page)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    @app.on_event("startup")
    async def startup_event():
        """
        Initialize database connection on application startup.
        Non-blocking: app will start even if database connection fails.
        """
        logger.info(f"Serving uploads from {upload_store.directory}")
        try:
            await init_db(engine, app_settings.DATABASE_URL)
            logger.info("Database connection established successfully")
        except Exception as e:
            logger.error(
                f"Failed to initialize database on startup: {str(e)}\n"
                f"The application will continue to run, but catalog endpoints will fail.\n"
                f"Please check your DATABASE_URL configuration and network connectivity."
            )

    @app.on_event("shutdown")
    async def shutdown_event():
        """Close database connections on application shutdown."""
        try:
            await close_db(engine)
        except Exception as e:
            # Ignore cancellation errors during shutdown - they're expected
            if not isinstance(e, (KeyboardInterrupt, asyncio.CancelledError)):
                logger.warning(f"Error during database shutdown: {str(e)}")

    return app


configure_logging(default_settings.LOG_LEVEL)

app = create_app()


def serve():
    """Run the application with uvicorn (console script `pfp-gallery`)."""
    import uvicorn

    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT)


if __name__ == "__main__":
    serve()
