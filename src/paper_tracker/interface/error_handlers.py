"""Global exception handlers — translate domain errors to HTTP responses.

Each domain exception maps to a status code, a machine-readable ``code`` and
the standard ``{"status": "error", "code": ..., "message": ...}`` envelope.
Starlette picks the handler registered for the closest class in the
exception's MRO, so subclasses override their parents.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from paper_tracker.domain.exceptions import (
    AccessDeniedError,
    AuthenticationFailedError,
    ConfigurationError,
    InvalidRepositoryUrlError,
    InvalidResponseError,
    MissingCredentialsError,
    PaperTrackerError,
    ProviderApiError,
    ProviderNetworkError,
    ProviderTimeoutError,
    RepoFileNotFoundError,
    RepositoryNotFoundError,
    SelfHostedInstanceNotFoundError,
)

logger = logging.getLogger(__name__)

_RETRY_LATER = "Please try again later."

_EXCEPTION_STATUS: list[tuple[type[PaperTrackerError], int, str]] = [
    (ConfigurationError, 422, "configuration_error"),
    (InvalidRepositoryUrlError, 422, "invalid_url"),
    (SelfHostedInstanceNotFoundError, 422, "instance_not_found"),
    (MissingCredentialsError, 401, "reauthenticate"),
    (AuthenticationFailedError, 401, "reauthenticate"),
    (AccessDeniedError, 403, "access_denied"),
    (RepositoryNotFoundError, 404, "repository_not_found"),
    (RepoFileNotFoundError, 404, "file_not_found"),
    (ProviderApiError, 502, "provider_error"),
    (InvalidResponseError, 502, "provider_error"),
    (ProviderNetworkError, 502, "network_error"),
    (ProviderTimeoutError, 504, "timeout"),
]

def _error_json(
    status_code: int, code: str, message: str, file_path: str | None = None
) -> JSONResponse:
    content: dict[str, str] = {"status": "error", "code": code, "message": message}
    if file_path is not None:
        content["file_path"] = file_path
    return JSONResponse(status_code=status_code, content=content)


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application."""

    # ── Domain exceptions ───────────────────────────────────────────────

    for exc_type, status, code in _EXCEPTION_STATUS:

        def _make_handler(
            status_code: int, error_code: str
        ):  # type: ignore[no-untyped-def]
            async def handler(request: Request, exc: Exception) -> JSONResponse:
                logger.warning("%s: %s", type(exc).__name__, exc)
                message = str(exc)
                if status_code >= 502:
                    message = f"{message} {_RETRY_LATER}"
                return _error_json(
                    status_code,
                    error_code,
                    message,
                    file_path=getattr(exc, "file_path", None),
                )

            return handler

        app.add_exception_handler(exc_type, _make_handler(status, code))

    # ── Pydantic / FastAPI validation errors ────────────────────────────

    @app.exception_handler(RequestValidationError)
    async def validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = []
        for err in exc.errors():
            loc = " → ".join(str(p) for p in err.get("loc", []))
            messages.append(f"{loc}: {err.get('msg', 'validation error')}")
        return _error_json(422, "validation_error", "; ".join(messages))

    # ── Catch-all for unexpected errors ─────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception")
        return _error_json(500, "internal_error", f"An unexpected error occurred. {_RETRY_LATER}")
