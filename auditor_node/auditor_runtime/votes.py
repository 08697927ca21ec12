from __future__ import annotations

"""
VoteRegistry: one record per voter.

    state["votes"]["<voter>"] = {
        "voter": str,
        "proxy": str,          # reserved, always "" (no delegation semantics)
        "weight": int,         # effective weight at last update
        "candidates": [str],
    }
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .state import ns


@dataclass
class VoteRecord:
    voter: str
    weight: int = 0
    candidates: List[str] = field(default_factory=list)
    proxy: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "voter": self.voter,
            "proxy": self.proxy,
            "weight": int(self.weight),
            "candidates": list(self.candidates),
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "VoteRecord":
        return cls(
            voter=str(obj["voter"]),
            weight=int(obj.get("weight", 0)),
            candidates=[str(c) for c in obj.get("candidates", [])],
            proxy=str(obj.get("proxy", "") or ""),
        )


class VoteRegistry:
    def __init__(self, state: Dict[str, Any]):
        self._state = state

    def _rows(self) -> Dict[str, Dict[str, Any]]:
        return ns(self._state, "votes")

    def get(self, voter: str) -> Optional[VoteRecord]:
        row = self._rows().get(voter)
        return VoteRecord.from_dict(row) if row else None

    def put(self, rec: VoteRecord) -> VoteRecord:
        self._rows()[rec.voter] = rec.to_dict()
        return rec

    def remove(self, voter: str) -> None:
        self._rows().pop(voter, None)

    def all(self) -> List[VoteRecord]:
        return [VoteRecord.from_dict(r) for _, r in sorted(self._rows().items())]

    def __len__(self) -> int:
        return len(self._rows())

    def cumulative_weight(self) -> int:
        """Sum of effective weight currently cast; the quorum numerator."""
        return sum(int(r.get("weight", 0)) for r in self._rows().values())
