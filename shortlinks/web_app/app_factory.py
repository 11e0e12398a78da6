"""FastAPI application factory."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shortlinks import __version__
from shortlinks.lib.exceptions import (
    AllocationExhaustedError,
    CodeConflictError,
    InvalidCodeError,
    InvalidURLError,
    LinkError,
    LinkNotFoundError,
)
from .api import api_router
from .web import web_router
from .middleware.logging import LoggingMiddleware


ERROR_STATUS = {
    InvalidURLError: status.HTTP_400_BAD_REQUEST,
    InvalidCodeError: status.HTTP_400_BAD_REQUEST,
    CodeConflictError: status.HTTP_409_CONFLICT,
    LinkNotFoundError: status.HTTP_404_NOT_FOUND,
    AllocationExhaustedError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error_status(exc: LinkError) -> int:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def link_error_handler(request: Request, exc: LinkError) -> JSONResponse:
    return JSONResponse(
        status_code=_error_status(exc),
        content={"error": exc.kind, "detail": str(exc)},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "invalid_request", "detail": messages},
    )


def create_app(
    db_instance,
    cache_instance,
    service_instance,
    config,
) -> FastAPI:
    """Create and configure FastAPI application.
    
    Args:
        db_instance: Link store instance
        cache_instance: Cache instance (or None)
        service_instance: LinkService instance
        config: Configuration instance
        
    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Short Links",
        description="Short-code allocation and redirect tracking service",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    
    # Store instances in app state for access in routes
    app.state.db = db_instance
    app.state.cache = cache_instance
    app.state.service = service_instance
    app.state.config = config
    
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    
    app.add_exception_handler(LinkError, link_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    
    # API routes first: the redirect route matches any single path segment
    app.include_router(api_router, prefix="/api", tags=["API"])
    app.include_router(web_router, tags=["Redirect"])
    
    return app
