"""
auditor_node/api/deps.py
------------------------

Shared FastAPI dependencies for the auditor routers.

- caller identity from the X-Auditor-Account header
- the executor instance living on app.state
- AuditorError -> HTTPException translation
"""

from typing import Any, Callable, Dict, Optional, Type

from fastapi import Header, HTTPException, Request

from ..auditor_executor import AuditorExecutor
from ..auditor_runtime.errors import (
    AuditorError,
    AuthorizationDenied,
    ConstraintViolation,
    InsufficientFunds,
    InvalidState,
    PeriodNotElapsed,
    QuorumNotMet,
)

STATUS_BY_ERROR: Dict[Type[AuditorError], int] = {
    AuthorizationDenied: 403,
    InvalidState: 409,
    ConstraintViolation: 400,
    QuorumNotMet: 425,
    PeriodNotElapsed: 425,
    InsufficientFunds: 402,
}


def get_executor(request: Request) -> AuditorExecutor:
    return request.app.state.executor


def require_account(
    x_auditor_account: str = Header(
        ...,
        alias="X-Auditor-Account",
        description="Account the request acts as (e.g. 'alice').",
    )
) -> str:
    account = (x_auditor_account or "").strip()
    if not account:
        raise HTTPException(status_code=401, detail={"error": "missing_account", "message": "X-Auditor-Account is empty"})
    return account


def optional_account(
    x_auditor_account: Optional[str] = Header(None, alias="X-Auditor-Account")
) -> str:
    return (x_auditor_account or "").strip()


def http_error(e: AuditorError) -> HTTPException:
    status_code = 400
    for cls in type(e).__mro__:
        if cls in STATUS_BY_ERROR:
            status_code = STATUS_BY_ERROR[cls]
            break
    return HTTPException(status_code=status_code, detail=e.to_dict())


def run(fn: Callable[..., Dict[str, Any]], *args: Any, **kwargs: Any) -> Dict[str, Any]:
    """Call an executor operation, translating rejections into HTTP errors."""
    try:
        return fn(*args, **kwargs)
    except AuditorError as e:
        raise http_error(e) from e
