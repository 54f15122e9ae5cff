from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ict_observatory.infrastructure.config import get_settings
from ict_observatory.infrastructure.exceptions import (
    AssessmentNotFoundError,
    AuthenticationError,
    ExportError,
    MultipleValidationError,
    ObservatoryError,
    PermissionDeniedError,
    UnknownThemeError,
    UserNotFoundError,
    log_error_details,
)
from ict_observatory.infrastructure.logging import clear_context, get_logger
from ict_observatory.web.routes import api

logger = get_logger(__name__)


def error_status(exc: ObservatoryError) -> int:
    if isinstance(exc, (AssessmentNotFoundError, UserNotFoundError, UnknownThemeError)):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, PermissionDeniedError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, AuthenticationError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, ExportError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


async def observatory_error_handler(request: Request, exc: ObservatoryError) -> JSONResponse:
    code = error_status(exc)
    if code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed", extra=log_error_details(exc)
        )
    elif code != status.HTTP_400_BAD_REQUEST:
        logger.info(f"{request.method} {request.url.path} -> {code}: {exc.message}")
    else:
        logger.warning(
            f"{request.method} {request.url.path} rejected", extra=log_error_details(exc)
        )
    body: dict[str, object] = {"detail": exc.user_message}
    if isinstance(exc, MultipleValidationError):
        body["errors"] = exc.details.get("errors", [])
    return JSONResponse(status_code=code, content=body)


def create_application() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app.title,
        version=settings.app.version,
        debug=settings.app.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=settings.security.cors_methods,
        allow_headers=["*"],
    )

    app.add_exception_handler(ObservatoryError, observatory_error_handler)

    @app.middleware("http")
    async def reset_log_context(request: Request, call_next):
        clear_context()
        return await call_next(request)

    app.include_router(api.router)
    return app


app = create_application()
