from __future__ import annotations

"""AuditorRoster: the currently elected committee. Membership is the signal."""

from typing import Any, Dict, Iterable, List

from .state import ns


class AuditorRoster:
    def __init__(self, state: Dict[str, Any]):
        self._state = state

    def _rows(self) -> Dict[str, Dict[str, Any]]:
        return ns(self._state, "auditors")

    def names(self) -> List[str]:
        return sorted(self._rows().keys())

    def __contains__(self, name: str) -> bool:
        return name in self._rows()

    def __len__(self) -> int:
        return len(self._rows())

    def replace(self, names: Iterable[str]) -> None:
        rows = self._rows()
        rows.clear()
        for n in names:
            rows[n] = {"auditor_name": n}

    def add(self, name: str) -> None:
        self._rows()[name] = {"auditor_name": name}

    def remove(self, name: str) -> None:
        self._rows().pop(name, None)
