from __future__ import annotations

"""
Currency-typed amounts.

An Asset is an integer amount of the smallest unit plus a symbol and a
precision, written the usual token way:

    "1000.0000 BOND"  -> Asset(amount=10000000, symbol="BOND", precision=4)

Arithmetic and ordering between assets of different symbols (or precisions)
is a ConstraintViolation; callers never mix currencies silently.
"""

import re
from dataclasses import dataclass
from typing import Any, Union

from .errors import ConstraintViolation

_ASSET_RE = re.compile(r"^\s*(-?)(\d+)(?:\.(\d+))?\s+([A-Z]{1,7})\s*$")

MAX_PRECISION = 18


@dataclass(frozen=True)
class Asset:
    amount: int
    symbol: str
    precision: int = 4

    # ------------------------------------------------------------------
    # Construction / serialisation
    # ------------------------------------------------------------------

    @classmethod
    def parse(cls, text: str) -> "Asset":
        m = _ASSET_RE.match(str(text or ""))
        if not m:
            raise ConstraintViolation("invalid_asset", f"cannot parse asset {text!r}")
        sign, whole, frac, symbol = m.groups()
        frac = frac or ""
        precision = len(frac)
        if precision > MAX_PRECISION:
            raise ConstraintViolation("invalid_asset", f"precision too large in {text!r}")
        amount = int(whole) * (10 ** precision) + (int(frac) if frac else 0)
        if sign:
            amount = -amount
        return cls(amount=amount, symbol=symbol, precision=precision)

    @classmethod
    def from_any(cls, obj: Union["Asset", str, dict, Any]) -> "Asset":
        if isinstance(obj, Asset):
            return obj
        if isinstance(obj, str):
            return cls.parse(obj)
        if isinstance(obj, dict):
            return cls(
                amount=int(obj.get("amount", 0)),
                symbol=str(obj.get("symbol", "")),
                precision=int(obj.get("precision", 4)),
            )
        raise ConstraintViolation("invalid_asset", f"unsupported asset value {obj!r}")

    def zero(self) -> "Asset":
        return Asset(0, self.symbol, self.precision)

    def __str__(self) -> str:
        scale = 10 ** self.precision
        sign = "-" if self.amount < 0 else ""
        whole, frac = divmod(abs(self.amount), scale)
        if self.precision:
            return f"{sign}{whole}.{frac:0{self.precision}d} {self.symbol}"
        return f"{sign}{whole} {self.symbol}"

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def same_kind(self, other: "Asset") -> bool:
        return self.symbol == other.symbol and self.precision == other.precision

    def _check(self, other: "Asset") -> None:
        if not isinstance(other, Asset):
            raise TypeError(f"expected Asset, got {type(other).__name__}")
        if not self.same_kind(other):
            raise ConstraintViolation(
                "symbol_mismatch",
                f"{self.precision},{self.symbol} vs {other.precision},{other.symbol}",
            )

    def __add__(self, other: "Asset") -> "Asset":
        self._check(other)
        return Asset(self.amount + other.amount, self.symbol, self.precision)

    def __sub__(self, other: "Asset") -> "Asset":
        self._check(other)
        return Asset(self.amount - other.amount, self.symbol, self.precision)

    def __lt__(self, other: "Asset") -> bool:
        self._check(other)
        return self.amount < other.amount

    def __le__(self, other: "Asset") -> bool:
        self._check(other)
        return self.amount <= other.amount

    def __gt__(self, other: "Asset") -> bool:
        self._check(other)
        return self.amount > other.amount

    def __ge__(self, other: "Asset") -> bool:
        self._check(other)
        return self.amount >= other.amount
