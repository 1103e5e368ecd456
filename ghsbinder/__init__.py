import logging
import logging.config
from typing import Callable

import httpx
from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from ghsbinder.constants import DEBUG, UPLOADS_DIR, LogConfig
from ghsbinder.exceptions import BinderError
from ghsbinder.routes import dashboard, healthcheck, routers
from ghsbinder.services import Services

logging.config.dictConfig(LogConfig().model_dump())
log = logging.getLogger("ghsbinder")

app = FastAPI(
    title="GHS Binder Management Dashboard",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)
app_router = APIRouter(prefix="/api")

if DEBUG:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://127.0.0.1:3000",
            "http://localhost:3000",
        ],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

for router in routers:
    app_router.include_router(router)

app.include_router(app_router)
app.include_router(dashboard.router)
# Also at the root, where uptime monitors look for it
app.include_router(healthcheck.router)
app.mount("/uploads", StaticFiles(directory=UPLOADS_DIR, check_dir=False), name="uploads")


def failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


@app.exception_handler(BinderError)
async def binder_error(request: Request, exc: BinderError) -> JSONResponse:
    log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return failure(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return failure(422, "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    ))


@app.exception_handler(httpx.HTTPError)
async def upstream_error(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    log.error("%s %s failed: %s", request.method, request.url.path, exc)
    return failure(502, str(exc))


@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.exception("%s %s failed", request.method, request.url.path)
    return failure(500, str(exc))


@app.on_event("startup")
async def start() -> None:
    """Builds the GitHub client, verification HTTP client, store and templater."""
    app.state.services = Services.from_environment()


@app.on_event("shutdown")
async def shutdown() -> None:
    """Closes the GitHub and verification HTTP clients."""
    await app.state.services.aclose()


@app.middleware("http")
async def setup_request(request: Request, callnext: Callable) -> Response:
    """Attaches the shared services to each request."""
    request.state.services = app.state.services
    return await callnext(request)
