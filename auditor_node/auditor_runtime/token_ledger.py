"""
auditor_node/auditor_runtime/token_ledger.py
--------------------------------------------

Minimal multi-symbol token ledger used as the custody collaborator.

Responsibilities (and nothing more):

- create(symbol, max_supply)            register a currency and its cap
- issue(to, quantity)                   mint within the cap
- transfer(from, to, quantity, memo)    move balances
- credit notices                        every completed transfer produces a
                                        CreditNotice delivered to listeners

Ledger shape:

    state["token"] = {
        "stats":    { "BOS": {"supply": int, "max_supply": int, "precision": int} },
        "balances": { "<account>": { "BOS": int } },
    }

Notice delivery is synchronous and FIFO: a transfer made by a listener while
notices are being delivered is queued behind the ones already pending, so
observers always see credits in the order the transfers completed.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List

from .asset import Asset
from .errors import ConstraintViolation, InsufficientFunds, InvalidState
from .state import ns

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreditNotice:
    from_account: str
    to_account: str
    quantity: Asset
    memo: str = ""


Listener = Callable[[CreditNotice], None]


class TokenLedger:
    def __init__(self, state: Dict[str, Any]):
        self._state = state
        self._listeners: List[Listener] = []
        self._pending: Deque[CreditNotice] = deque()
        self._delivering = False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _root(self) -> Dict[str, Any]:
        root = ns(self._state, "token")
        root.setdefault("stats", {})
        root.setdefault("balances", {})
        return root

    def _stat(self, symbol: str) -> Dict[str, Any]:
        stat = self._root()["stats"].get(symbol)
        if stat is None:
            raise ConstraintViolation("unknown_symbol", f"token {symbol} does not exist")
        return stat

    def _check_kind(self, quantity: Asset) -> None:
        stat = self._stat(quantity.symbol)
        if int(stat["precision"]) != quantity.precision:
            raise ConstraintViolation("symbol_precision_mismatch", str(quantity))

    def _add(self, account: str, symbol: str, amount: int) -> None:
        accts = self._root()["balances"].setdefault(account, {})
        accts[symbol] = int(accts.get(symbol, 0)) + int(amount)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _deliver(self, notice: CreditNotice) -> None:
        self._pending.append(notice)
        if self._delivering:
            return
        self._delivering = True
        try:
            while self._pending:
                current = self._pending.popleft()
                for listener in self._listeners:
                    listener(current)
        except Exception:
            # The enclosing operation is about to be rolled back; anything
            # still queued belongs to it.
            self._pending.clear()
            raise
        finally:
            self._delivering = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create(self, symbol: str, max_supply: Asset) -> None:
        stats = self._root()["stats"]
        if symbol in stats:
            raise InvalidState("token_exists", f"token {symbol} already exists")
        if max_supply.symbol != symbol or max_supply.amount <= 0:
            raise ConstraintViolation("invalid_max_supply", str(max_supply))
        stats[symbol] = {"supply": 0, "max_supply": max_supply.amount, "precision": max_supply.precision}
        log.info("token created symbol=%s max_supply=%s", symbol, max_supply)

    def has_symbol(self, symbol: str) -> bool:
        return symbol in self._root()["stats"]

    def max_supply(self, symbol: str) -> int:
        return int(self._stat(symbol)["max_supply"])

    def supply(self, symbol: str) -> int:
        return int(self._stat(symbol)["supply"])

    def issue(self, to: str, quantity: Asset) -> None:
        self._check_kind(quantity)
        if quantity.amount <= 0:
            raise ConstraintViolation("non_positive_quantity", str(quantity))
        stat = self._stat(quantity.symbol)
        if int(stat["supply"]) + quantity.amount > int(stat["max_supply"]):
            raise ConstraintViolation("exceeds_max_supply", str(quantity))
        stat["supply"] = int(stat["supply"]) + quantity.amount
        self._add(to, quantity.symbol, quantity.amount)

    def balance_of(self, account: str, symbol: str) -> int:
        return int(self._root()["balances"].get(account, {}).get(symbol, 0))

    def balance(self, account: str, symbol: str) -> Asset:
        precision = int(self._stat(symbol)["precision"])
        return Asset(self.balance_of(account, symbol), symbol, precision)

    def balances(self, account: str) -> Dict[str, int]:
        return dict(self._root()["balances"].get(account, {}))

    def transfer(self, from_account: str, to_account: str, quantity: Asset, memo: str = "") -> CreditNotice:
        if from_account == to_account:
            raise ConstraintViolation("self_transfer", "cannot transfer to self")
        if not to_account:
            raise ConstraintViolation("missing_recipient", "transfer recipient required")
        self._check_kind(quantity)
        if quantity.amount <= 0:
            raise ConstraintViolation("non_positive_quantity", str(quantity))
        if len(memo or "") > 256:
            raise ConstraintViolation("memo_too_long", "memo has more than 256 characters")

        have = self.balance_of(from_account, quantity.symbol)
        if have < quantity.amount:
            raise InsufficientFunds(
                "overdrawn_balance",
                f"{from_account} holds {have} of {quantity.symbol}, needs {quantity.amount}",
            )

        self._add(from_account, quantity.symbol, -quantity.amount)
        self._add(to_account, quantity.symbol, quantity.amount)

        notice = CreditNotice(from_account, to_account, quantity, memo or "")
        self._deliver(notice)
        return notice
