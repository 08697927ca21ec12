from __future__ import annotations

"""
State document helpers.

All runtime data lives in one JSON-serialisable dict, one namespace per
collection:

    state = {
        "candidates": { "<name>": {...} },
        "votes":      { "<voter>": {...} },
        "auditors":   { "<name>": {...} },
        "bios":       { "<name>": {...} },
        "tenure":     { "last_period_time": int | None, "met_initial_votes_threshold": bool },
        "config":     { ...ContractConfig... } | {},
        "token":      { "stats": {...}, "balances": {...} },
        "authority":  { "grants": {...}, "policies": {...} },
        "events":     [ ... ],
    }

Repositories hold a reference to the *state dict* (not the namespace) so that
an executor-level snapshot restore, which swaps the dict contents in place,
is visible to every repository without re-wiring.
"""

from typing import Any, Dict, List

NAMESPACES = (
    "candidates",
    "votes",
    "auditors",
    "bios",
    "tenure",
    "config",
    "token",
    "authority",
)


def ns(state: Dict[str, Any], key: str) -> Dict[str, Any]:
    obj = state.setdefault(key, {})
    if not isinstance(obj, dict):
        state[key] = {}
        obj = state[key]
    return obj


def list_ns(state: Dict[str, Any], key: str) -> List[Any]:
    obj = state.setdefault(key, [])
    if not isinstance(obj, list):
        state[key] = []
        obj = state[key]
    return obj


def new_state() -> Dict[str, Any]:
    state: Dict[str, Any] = {name: {} for name in NAMESPACES}
    state["events"] = []
    return state


def replace_in_place(target: Dict[str, Any], source: Dict[str, Any]) -> None:
    """Make `target` hold exactly the contents of `source`."""
    target.clear()
    target.update(source)
