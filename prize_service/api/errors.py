from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from prize_service.services.http import UpstreamServiceError


def api_error(
    *,
    code: str,
    message: str,
    details: Any | None = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "code": code,
            "message": message,
            "details": details,
        },
    )


def rule_not_found(rule_id: str) -> HTTPException:
    return api_error(
        code="rule_not_found",
        message=f"Prize rule {rule_id} not found",
        details={"id": rule_id},
        status_code=status.HTTP_404_NOT_FOUND,
    )


def upstream_error(exc: UpstreamServiceError) -> HTTPException:
    return api_error(
        code="upstream_unavailable",
        message=str(exc),
        details={"retryable": exc.retryable},
        status_code=exc.status_code,
    )
