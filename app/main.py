from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api.deps import get_app_settings, get_size_registry
from app.api.endpoints import attachments
from app.core.exceptions import ThumbnailsException
from app.core.logging import setup_logging
from app.middleware.error_handling import ErrorHandlingMiddleware, thumbnails_exception_handler
from app.middleware.logging import RequestLoggingMiddleware

settings = get_app_settings()

# Initialize logging system
setup_logging(log_level=settings.log_level, log_dir=settings.logs_dir, console=settings.debug)

app = FastAPI(title=settings.app_name, version=settings.app_version)

# Add middleware (order matters - last added runs first)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ErrorHandlingMiddleware)
app.add_exception_handler(ThumbnailsException, thumbnails_exception_handler)

app.include_router(attachments.router, prefix="/api", tags=["attachments"])

# Originals and generated sizes are served straight from disk unless a CDN fronts them
settings.uploads_dir.mkdir(parents=True, exist_ok=True)
if settings.get_uploads_url().startswith("/"):
    app.mount(settings.get_uploads_url(), StaticFiles(directory=str(settings.uploads_dir)), name="uploads")


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": settings.app_name, "version": settings.app_version}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "sizes": len(get_size_registry())}
