import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from tutorcenter.api.v1.absence_requests.portal_router import router as portal_requests_router
from tutorcenter.api.v1.absence_requests.router import router as requests_router
from tutorcenter.api.v1.attendance.router import router as attendance_router
from tutorcenter.api.v1.audit.router import router as audit_router
from tutorcenter.core.config import settings
from tutorcenter.core.exceptions import InternalError

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Tutoring Center Backend")

    # CORS: allow the admin back office and parent portal frontends to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("%s %s failed", request.method, request.url.path)
        err = InternalError()
        return JSONResponse(status_code=err.status_code, content={"detail": err.detail})

    # Routers
    app.include_router(portal_requests_router)
    app.include_router(requests_router)
    app.include_router(attendance_router)
    app.include_router(audit_router)

    return app


app = create_app()
