# =======================================================================================
# campus_visitor/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import config
from .api.routes.admin import router as admin_router
from .api.routes.auth import router as auth_router
from .api.routes.faculty import router as faculty_router
from .api.routes.security import router as security_router
from .api.routes.visitor import router as visitor_router
from .database import db_manager
from .models.schemas import HealthResponse
from .utils.exceptions import CampusVisitorError
from .utils.logger import setup_logger
from .workers.mail_worker import start_mail_worker, stop_mail_worker

logger = logging.getLogger(__name__)


def _error_body(error: str, message: str) -> dict:
    return {"success": False, "error": error, "message": message}


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logger()
    db_manager.init_schema()
    start_mail_worker()
    logger.info("Campus Visitor API started successfully")
    yield
    stop_mail_worker()
    logger.info("Campus Visitor API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Campus Visitor Management API",
        version=__version__,
        description="Visitor token requests, approval, issuance and gate verification",
        debug=config.API_DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router, prefix="/api", tags=["auth"])
    app.include_router(visitor_router, prefix="/api", tags=["visitor"])
    app.include_router(faculty_router, prefix="/api", tags=["faculty"])
    app.include_router(security_router, prefix="/api", tags=["security"])
    app.include_router(admin_router, prefix="/api", tags=["admin"])

    @app.exception_handler(CampusVisitorError)
    async def handle_service_error(request: Request, exc: CampusVisitorError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.error, exc.message))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ())[1:])
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        else:
            message = "Invalid request"
        return JSONResponse(status_code=400, content=_error_body("validation_error", message))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_error_body("internal_error", "Internal server error"))

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def api_health():
        try:
            db_manager.fetch_one("SELECT 1")
            return HealthResponse(status="ok", dataAvailable=True, message=None)
        except Exception as e:
            return HealthResponse(
                status="error", dataAvailable=False, message=str(e)
            )

    return app


app = create_app()


def main():
    import uvicorn

    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)


if __name__ == "__main__":
    main()
