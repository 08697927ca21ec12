from __future__ import annotations

"""
auditor_node/auditor_runtime/authority.py
-----------------------------------------

Authorization collaborator.

Two jobs:

1. Verify callers of operations:
   - require_auth(caller, account): caller acts as `account` itself
   - require_level(caller, level):  caller holds an elevated capability

   Levels:
     contract  configuration changes (held by the program account)
     mid       firecand / fireauditor (held by the managed auth account and
               any explicit grants)

   The program account implicitly holds every level.

2. Accept the authorization policy derived after each rotation and record it
   against the managed account:

    state["authority"]["policies"]["<account>@<permission>"] = {
        "account": str, "permission": str, "threshold": int, "accounts": [str],
    }
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import AuthorizationDenied
from .state import ns

AUDITORS_PERMISSION = "auditors"


class AuthLevel(str, Enum):
    CONTRACT = "contract"
    MID = "mid"


@dataclass(frozen=True)
class AuthPolicy:
    account: str
    permission: str
    threshold: int
    accounts: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "permission": self.permission,
            "threshold": int(self.threshold),
            "accounts": list(self.accounts),
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "AuthPolicy":
        return cls(
            account=str(obj["account"]),
            permission=str(obj.get("permission", AUDITORS_PERMISSION)),
            threshold=int(obj.get("threshold", 1)),
            accounts=tuple(obj.get("accounts", [])),
        )


class Authority:
    def __init__(
        self,
        state: Dict[str, Any],
        program_account: str,
        auth_account: Optional[Callable[[], str]] = None,
    ):
        self._state = state
        self.program_account = program_account
        self._auth_account = auth_account or (lambda: "")

    def _root(self) -> Dict[str, Any]:
        root = ns(self._state, "authority")
        root.setdefault("grants", {})
        root.setdefault("policies", {})
        return root

    # ------------------------------------------------------------------
    # Grants
    # ------------------------------------------------------------------

    def grant(self, account: str, level: AuthLevel | str) -> None:
        key = AuthLevel(level).value
        holders = self._root()["grants"].setdefault(key, [])
        if account not in holders:
            holders.append(account)
            holders.sort()

    def holders(self, level: AuthLevel | str) -> List[str]:
        key = AuthLevel(level).value
        out = set(self._root()["grants"].get(key, []))
        out.add(self.program_account)
        if AuthLevel(level) == AuthLevel.MID:
            auth_account = self._auth_account()
            if auth_account:
                out.add(auth_account)
        return sorted(out)

    def has_level(self, caller: str, level: AuthLevel | str) -> bool:
        return bool(caller) and caller in self.holders(level)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def require_auth(self, caller: Optional[str], account: str) -> None:
        if not caller or caller != account:
            raise AuthorizationDenied(
                "missing_authority",
                f"missing authority of {account}",
                caller=caller or "",
            )

    def require_level(self, caller: Optional[str], level: AuthLevel | str) -> None:
        if not self.has_level(caller or "", level):
            raise AuthorizationDenied(
                "missing_capability",
                f"{caller or '<anonymous>'} lacks the {AuthLevel(level).value} capability",
                caller=caller or "",
                level=AuthLevel(level).value,
            )

    # ------------------------------------------------------------------
    # Policies
    # ------------------------------------------------------------------

    def set_policy(self, policy: AuthPolicy) -> None:
        key = f"{policy.account}@{policy.permission}"
        self._root()["policies"][key] = policy.to_dict()

    def get_policy(self, account: str, permission: str = AUDITORS_PERMISSION) -> Optional[AuthPolicy]:
        raw = self._root()["policies"].get(f"{account}@{permission}")
        return AuthPolicy.from_dict(raw) if raw else None
