"""Builders for the structured error payloads returned by exception handlers.

Each builder stamps the active request id and a timezone-aware timestamp so
every error body has the same shape regardless of where it originated.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from watchlist.schemas.error import (
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from watchlist.utils.request_context import get_request_id

__all__ = [
    "build_error_response",
    "build_validation_error_response",
    "validation_details_from_errors",
]


def _current_timestamp() -> datetime:
    return datetime.now(UTC)


def validation_details_from_errors(errors: Sequence[dict]) -> list[ValidationErrorDetail]:
    """Flatten pydantic/FastAPI error dicts into ``ValidationErrorDetail`` rows.

    The leading location segment (``body``, ``query``, ``path``, ``header``) is
    dropped so clients see the field name they actually sent.
    """

    details: list[ValidationErrorDetail] = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ())]
        if len(location) > 1 and location[0] in {"body", "query", "path", "header"}:
            location = location[1:]
        details.append(
            ValidationErrorDetail(
                field=".".join(location) or "request",
                message=str(error.get("msg", "Invalid value")),
                value=error.get("input"),
            )
        )
    return details


def build_validation_error_response(
    *,
    errors: Sequence[ValidationErrorDetail],
    message: str,
    detail: str,
    status_code: int,
    path: str,
    request_id: str | None = None,
) -> ValidationErrorResponse:
    resolved_request_id = request_id or get_request_id() or None
    return ValidationErrorResponse(
        error_type=ErrorType.VALIDATION_ERROR,
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=resolved_request_id,
        path=path,
        errors=list(errors),
    )


def build_error_response(
    *,
    error_type: ErrorType,
    message: str,
    detail: str | None,
    status_code: int,
    path: str,
    retry_after: int | None = None,
    request_id: str | None = None,
) -> ErrorResponse:
    """Construct an ``ErrorResponse`` for the current request."""

    resolved_request_id = request_id or get_request_id() or None
    return ErrorResponse(
        error_type=error_type,
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=resolved_request_id,
        path=path,
        retry_after=retry_after,
    )
