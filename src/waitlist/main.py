"""Main FastAPI application for the waitlist service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.middleware import LoggingMiddleware
from .api.routes import applications_router, daycares_router, health_router
from .config import settings
from .database import close_store, get_store
from .utils.exceptions import TransactionFailure, WaitlistError
from .utils.logger import get_logger

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    logger.log_info(f"Starting {settings.app_name} v{settings.app_version}")

    try:
        store = await get_store()
        if await store.health_check():
            logger.log_info(f"Waitlist store connected ({settings.database_backend.value})")
        else:
            raise RuntimeError("Waitlist store health check failed")
    except Exception as e:
        logger.log_error(f"Failed to connect waitlist store: {e}")
        raise

    yield

    logger.log_info(f"Shutting down {settings.app_name}")
    await close_store()


app = FastAPI(
    title=settings.app_name,
    description="Waitlist ranking and placement acceptance for daycares",
    version=settings.app_version,
    lifespan=lifespan
)

app.add_middleware(LoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(daycares_router)
app.include_router(applications_router)


@app.exception_handler(WaitlistError)
async def waitlist_error_handler(request: Request, exc: WaitlistError):
    """Render domain errors with their status code."""
    if isinstance(exc, TransactionFailure):
        logger.log_error(f"Transaction failed on {request.url.path}", error=exc.__cause__ or exc)
    else:
        logger.log_warning(f"{exc.error_code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions without leaking internals."""
    logger.log_error(f"Unhandled exception: {str(exc)}", error=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "InternalError", "error_code": "INTERNAL_ERROR",
                 "message": "Internal server error", "details": {}}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
