# auditor_node/auditor_runtime/__init__.py
from __future__ import annotations

"""
Auditor runtime package (lazy import).

Nothing is imported at package import time; submodules are exposed lazily via
__getattr__ (PEP 562) so `import auditor_node.auditor_runtime` stays cheap and
free of pydantic / config side effects.
"""

from importlib import import_module
from typing import Any

__all__ = [
    "asset",
    "atomic_store",
    "authority",
    "bios",
    "candidates",
    "config",
    "context",
    "election",
    "errors",
    "operations",
    "roster",
    "stake",
    "tally",
    "token_ledger",
    "unstake",
    "votes",
]

_LAZY_MAP = {name: f"auditor_node.auditor_runtime.{name}" for name in __all__}


def __getattr__(name: str) -> Any:
    mod_path = _LAZY_MAP.get(name)
    if not mod_path:
        raise AttributeError(name)
    return import_module(mod_path)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_MAP.keys()))
