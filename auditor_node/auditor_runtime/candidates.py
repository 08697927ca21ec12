from __future__ import annotations

"""
auditor_node/auditor_runtime/candidates.py
------------------------------------------

CandidateRegistry: persistent collection of candidates.

Ledger shape:

    state["candidates"]["<name>"] = {
        "candidate_name": str,
        "locked_tokens": "1000.0000 BOND",
        "total_votes": int,
        "is_active": bool,
        "unstaking_end_time_stamp": int,   # unix seconds
        "lockup_enforced": bool,           # lock came from a departure / lock-flagged removal
    }

Records are never deleted while they hold stake; after a full unstake the
record stays, zeroed.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from .asset import Asset
from .state import ns


@dataclass
class Candidate:
    candidate_name: str
    locked_tokens: Asset
    total_votes: int = 0
    is_active: bool = False
    unstaking_end_time_stamp: int = 0
    lockup_enforced: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidate_name": self.candidate_name,
            "locked_tokens": str(self.locked_tokens),
            "total_votes": int(self.total_votes),
            "is_active": bool(self.is_active),
            "unstaking_end_time_stamp": int(self.unstaking_end_time_stamp),
            "lockup_enforced": bool(self.lockup_enforced),
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "Candidate":
        return cls(
            candidate_name=str(obj["candidate_name"]),
            locked_tokens=Asset.from_any(obj["locked_tokens"]),
            total_votes=int(obj.get("total_votes", 0)),
            is_active=bool(obj.get("is_active", False)),
            unstaking_end_time_stamp=int(obj.get("unstaking_end_time_stamp", 0)),
            lockup_enforced=bool(obj.get("lockup_enforced", False)),
        )


class CandidateRegistry:
    def __init__(self, state: Dict[str, Any]):
        self._state = state

    def _rows(self) -> Dict[str, Dict[str, Any]]:
        return ns(self._state, "candidates")

    def get(self, name: str) -> Optional[Candidate]:
        row = self._rows().get(name)
        return Candidate.from_dict(row) if row else None

    def exists(self, name: str) -> bool:
        return name in self._rows()

    def put(self, cand: Candidate) -> Candidate:
        self._rows()[cand.candidate_name] = cand.to_dict()
        return cand

    def all(self) -> List[Candidate]:
        return [Candidate.from_dict(r) for _, r in sorted(self._rows().items())]

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._rows())

    def active(self) -> List[Candidate]:
        return [c for c in self.all() if c.is_active]

    def is_active(self, name: str) -> bool:
        row = self._rows().get(name)
        return bool(row and row.get("is_active"))

    def ranked(self, exclude: Optional[set] = None) -> List[Candidate]:
        """
        Active candidates with a positive tally, most votes first.

        Ties are broken by ascending candidate name so that the same registry
        always ranks the same way.
        """
        skip = exclude or set()
        pool = [c for c in self.active() if c.total_votes > 0 and c.candidate_name not in skip]
        pool.sort(key=lambda c: (-c.total_votes, c.candidate_name))
        return pool

    def total_locked(self, symbol: str) -> int:
        total = 0
        for c in self.all():
            if c.locked_tokens.symbol == symbol:
                total += c.locked_tokens.amount
        return total

    def any_staked(self) -> bool:
        return any(c.locked_tokens.amount > 0 for c in self.all())
