import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.applications import Starlette
from starlette.routing import Mount

from clioboard.config import get_settings
from clioboard.exceptions import (
    AuthenticationError,
    InvalidTransitionError,
    NotFoundError,
    StoreError,
    ValidationFailedError,
)
from clioboard.mcp_server import mcp
from clioboard.models.common import HealthResponse
from clioboard.routers.audit import router as audit_router
from clioboard.routers.notes import router as notes_router
from clioboard.routers.routines import router as routines_router
from clioboard.routers.search import router as search_router
from clioboard.routers.tasks import router as tasks_router
from clioboard.services import tasks as tasks_service

logger = logging.getLogger(__name__)


# --- FastAPI app ---

api = FastAPI(title="Clio Board", version="0.1.0")
api.include_router(tasks_router)
api.include_router(notes_router)
api.include_router(routines_router)
api.include_router(audit_router)
api.include_router(search_router)


@api.get("/api/health")
def api_health() -> HealthResponse:
    return HealthResponse(status="ok", active_tasks=tasks_service.count_active_tasks())


# --- Exception handlers ---

def _error(status_code: int, error_code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error_code": error_code, "message": message})


@api.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(404, "not_found", str(exc))


@api.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return _error(409, "invalid_transition", str(exc))


@api.exception_handler(ValidationFailedError)
async def validation_failed_handler(request: Request, exc: ValidationFailedError):
    return _error(400, "validation_failed", str(exc))


@api.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return _error(400, "validation_failed", details)


@api.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return _error(500, "store_failure", str(exc))


@api.exception_handler(AuthenticationError)
async def auth_error_handler(request: Request, exc: AuthenticationError):
    return _error(401, "auth_error", str(exc))


# --- Starlette root app ---

mcp_app = mcp.http_app(path="/", stateless_http=True)

app = Starlette(
    routes=[
        Mount("/mcp", app=mcp_app),
        Mount("/", app=api),
    ],
    lifespan=mcp_app.lifespan,
)


def run():
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "clioboard.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
