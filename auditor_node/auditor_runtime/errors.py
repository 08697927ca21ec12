from __future__ import annotations

"""
auditor_node/auditor_runtime/errors.py
--------------------------------------

Error taxonomy for the auditor runtime.

Every rejected operation raises one of these. Each carries a stable
snake_case `code` so callers (API layer, tests, event journal) can tell
failures apart without parsing messages.

    AuditorError
      ├── AuthorizationDenied   caller lacks the required capability
      ├── InvalidState          operation not allowed from current lifecycle state
      ├── ConstraintViolation   malformed / out-of-bounds input
      ├── QuorumNotMet          vote participation below the tenure threshold
      ├── PeriodNotElapsed      tenure period since last rotation not yet over
      └── InsufficientFunds     reported by the token ledger
"""

from typing import Any, Dict, Optional


class AuditorError(Exception):
    """Base class for all runtime rejections."""

    default_code = "auditor_error"

    def __init__(self, code: Optional[str] = None, message: str = "", **detail: Any):
        self.code = code or self.default_code
        self.message = message or self.code
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.detail:
            out["detail"] = dict(self.detail)
        return out


class AuthorizationDenied(AuditorError):
    default_code = "authorization_denied"


class InvalidState(AuditorError):
    default_code = "invalid_state"


class ConstraintViolation(AuditorError):
    default_code = "constraint_violation"


class QuorumNotMet(AuditorError):
    default_code = "quorum_not_met"


class PeriodNotElapsed(AuditorError):
    default_code = "period_not_elapsed"


class InsufficientFunds(AuditorError):
    default_code = "insufficient_funds"
