from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from image_server import config
from image_server.app.context import AppContext
from image_server.app.cors import cors_headers, preflight_headers
from image_server.app.exceptions import AuthError, ImageServerError, RangeNotSatisfiable
from image_server.app.routes.serve_routes import router as serve_router
from image_server.app.routes.upload_routes import router as upload_router
from image_server.app.services.storage_manager import LocalObjectStore
from image_server.logger_config import setup_logger
from image_server.monitor import StoreMonitor

# Logger setup
logger = setup_logger()


async def build_context(settings: config.Settings) -> AppContext:
    store = LocalObjectStore(Path(settings.data_dir), Path(settings.temp_dir))
    await store.initialize()
    monitor = StoreMonitor(settings.monitor_failure_threshold, settings.monitor_window_seconds)
    return AppContext(settings=settings, store=store, monitor=monitor)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.context = await build_context(config.load_settings())
    yield


# Create FastAPI app with lifespan
# Every path is an object key, so the docs routes stay off
app = FastAPI(title="Image Server", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)


def current_settings(request: Request) -> config.Settings:
    context = getattr(request.app.state, "context", None)
    return context.settings if context is not None else config.load_settings()


def error_response(request: Request, status_code: int, detail: str,
                   headers: Optional[Dict[str, str]] = None) -> Response:
    """Error bodies are JSON for GET/PUT and empty for HEAD."""
    if request.method == "HEAD":
        return Response(status_code=status_code, headers=headers)
    return JSONResponse({"detail": detail}, status_code=status_code, headers=headers)


@app.exception_handler(ImageServerError)
async def image_server_error_handler(request: Request, exc: ImageServerError):
    headers = {}
    if isinstance(exc, AuthError):
        headers["WWW-Authenticate"] = 'Basic realm="upload"'
    if isinstance(exc, RangeNotSatisfiable):
        headers["Content-Range"] = f"bytes */{exc.total_size}"
    return error_response(request, exc.status_code, exc.detail, headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
    return error_response(request, 400, "Malformed request")


@app.middleware("http")
async def cors_and_error_boundary(request: Request, call_next):
    """Outermost boundary: nothing escapes as an unhandled fault, and every
    response carries the same CORS header set."""
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"Unhandled error for {request.method} {request.url.path}: {str(e)}", exc_info=True)
        response = error_response(request, 500, "Internal Server Error")

    response.headers.update(cors_headers(request.url.path, current_settings(request)))
    return response


@app.options("/{path:path}")
async def preflight(request: Request):
    return Response(status_code=204, headers=preflight_headers(request.url.path, current_settings(request)))


app.include_router(upload_router)
app.include_router(serve_router)


def run():
    logger.info("Starting image server...")
    logger.info(f"Data directory: {config.DATA_DIR}")
    logger.info(f"Temporary directory: {config.TEMP_DIR}")
    logger.info(f"Maximum upload size: {config.MAX_UPLOAD_SIZE / (1024*1024):.2f} MB")
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
