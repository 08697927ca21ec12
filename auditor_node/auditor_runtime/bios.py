from __future__ import annotations

"""Candidate bio text: size-checked, stored opaquely."""

from typing import Any, Dict, Optional

from .errors import ConstraintViolation
from .state import ns

MAX_BIO_CHARS = 256


def validate_payload_size(payload: str, max_size: int, *, code: str = "payload_too_large") -> None:
    if not isinstance(payload, str):
        raise ConstraintViolation("payload_not_text", "payload must be a string")
    if len(payload) > max_size:
        raise ConstraintViolation(code, f"payload has {len(payload)} characters, limit is {max_size}")


class BioStore:
    def __init__(self, state: Dict[str, Any]):
        self._state = state

    def _rows(self) -> Dict[str, Dict[str, Any]]:
        return ns(self._state, "bios")

    def get(self, candidate: str) -> Optional[str]:
        row = self._rows().get(candidate)
        return row.get("bio") if row else None

    def set(self, candidate: str, bio: str) -> None:
        validate_payload_size(bio, MAX_BIO_CHARS, code="bio_too_long")
        self._rows()[candidate] = {"candidate_name": candidate, "bio": bio}
