"""
Exception handlers for the NexaAuth API.

Every failure leaves the service in one body shape:

    {"error": CODE, "message": str, "request_id": str, "details": {...}}

``details`` is omitted when empty. Partial provisioning is not a failure
and never reaches these handlers; it is reported in the 201 body.
"""

import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from nexaauth.exceptions import AdminAuthError, NexaAuthError, ProviderError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Only the statuses the framework itself raises here: unknown or disabled
# routes, wrong method, admin client not initialized.
HTTP_ERROR_CODES = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    503: "SERVICE_UNAVAILABLE",
}


def request_id_for(request: Request) -> str:
    return request.headers.get(REQUEST_ID_HEADER) or str(uuid4())


def error_response(
    request_id: str,
    error: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    content = {
        "error": error,
        "message": message,
        "request_id": request_id,
    }
    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={REQUEST_ID_HEADER: request_id},
    )


async def nexaauth_error_handler(request: Request, exc: NexaAuthError) -> JSONResponse:
    """
    Remaining domain errors, mostly caller-side: missing identity fields,
    unknown user.
    """
    request_id = request_id_for(request)
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{request.url.path} rejected: {exc.message}",
        extra={"request_id": request_id, "error_code": exc.code},
    )
    return error_response(
        request_id, exc.code, exc.message, exc.status_code, exc.details
    )


async def admin_auth_error_handler(
    request: Request, exc: AdminAuthError
) -> JSONResponse:
    """
    The admin token could not be obtained, so nothing was provisioned.

    The underlying transport error stays in the log; callers only learn the
    upstream status, if there was one.
    """
    request_id = request_id_for(request)
    logger.error(
        f"Admin authentication failed on {request.url.path}: {exc.message}",
        extra={"request_id": request_id, "error_details": exc.details},
    )

    details = {}
    if "upstream_status" in exc.details:
        details["upstream_status"] = exc.details["upstream_status"]
    return error_response(
        request_id,
        exc.code,
        "Failed to obtain Keycloak admin token",
        exc.status_code,
        details,
    )


async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    """
    Keycloak answered a request outside any provisioning stage (user
    creation, lookups) with an unexpected status.
    """
    request_id = request_id_for(request)
    logger.error(
        f"Keycloak error on {request.url.path}: {exc.message}",
        extra={
            "request_id": request_id,
            "error_code": exc.code,
            "upstream_status": exc.upstream_status,
        },
    )

    details = {"upstream_status": exc.upstream_status}
    if exc.details.get("response") is not None:
        details["upstream_response"] = exc.details["response"]
    return error_response(
        request_id, exc.code, exc.message, exc.status_code, details
    )


async def malformed_request_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    The body could not be parsed into a request model at all. Missing
    identity fields are not reported here; they are a 400 from
    identity validation.
    """
    request_id = request_id_for(request)
    fields = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.info(
        f"Malformed request on {request.url.path}",
        extra={"request_id": request_id, "fields": fields},
    )
    return error_response(
        request_id,
        "MALFORMED_REQUEST",
        "Request body could not be parsed",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        {"fields": fields},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(
        request_id_for(request),
        HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        str(exc.detail),
        exc.status_code,
    )


def build_unhandled_exception_handler(debug: bool):
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        request_id = request_id_for(request)
        logger.error(
            f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
            extra={"request_id": request_id},
            exc_info=exc,
        )

        details = None
        if debug:
            details = {
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
            }
        return error_response(
            request_id,
            "INTERNAL_ERROR",
            "An unexpected error occurred. Please try again later.",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details,
        )

    return unhandled_exception_handler


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    # Starlette resolves handlers along the exception's MRO, so the
    # subclasses win over the NexaAuthError fallback.
    app.add_exception_handler(AdminAuthError, admin_auth_error_handler)
    app.add_exception_handler(ProviderError, provider_error_handler)
    app.add_exception_handler(NexaAuthError, nexaauth_error_handler)
    app.add_exception_handler(RequestValidationError, malformed_request_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, build_unhandled_exception_handler(debug))
