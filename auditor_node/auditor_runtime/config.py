from __future__ import annotations

"""
auditor_node/auditor_runtime/config.py
--------------------------------------

Contract configuration (the parameter table consumed by the core) and the
store that holds it inside the state document.

Parameters
----------
lockupasset                 bond each candidate must have locked to nominate
maxvotes                    max candidates per vote record
numelected                  committee size
authaccount                 managed account whose "auditors" permission is re-derived
auth_threshold_auditors     signatures required on that permission
lockup_release_time_delay   seconds before released stake may be unstaked
periodlength                minimum seconds between successful tenures
initial_vote_quorum_percent participation needed for the first tenure
vote_quorum_percent         participation needed afterwards
auditor_pay                 flat pay per auditor per tenure (zero disables pay)
pay_account                 account that funds pay
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .asset import Asset
from .errors import ConstraintViolation, InvalidState
from .state import ns


class ContractConfig(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    lockupasset: Asset
    maxvotes: int = Field(default=3, ge=1)
    numelected: int = Field(default=5, ge=1)
    authaccount: str = ""
    auth_threshold_auditors: int = Field(default=3, ge=1)
    lockup_release_time_delay: int = Field(default=7 * 24 * 3600, ge=0)
    periodlength: int = Field(default=7 * 24 * 3600, ge=0)
    initial_vote_quorum_percent: int = Field(default=15, ge=0, le=100)
    vote_quorum_percent: int = Field(default=10, ge=0, le=100)
    auditor_pay: Asset = Field(default_factory=lambda: Asset(0, "BOS", 4))
    pay_account: str = ""

    @field_validator("lockupasset", "auditor_pay", mode="before")
    @classmethod
    def _coerce_asset(cls, v: Any) -> Asset:
        return Asset.from_any(v)

    @field_serializer("lockupasset", "auditor_pay")
    def _asset_to_str(self, v: Asset) -> str:
        return str(v)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class ConfigStore:
    """Reads/writes `state["config"]`. Empty namespace means "not configured"."""

    def __init__(self, state: Dict[str, Any], program_account: str = ""):
        self._state = state
        self.program_account = program_account

    def is_set(self) -> bool:
        return bool(ns(self._state, "config"))

    def get(self) -> ContractConfig:
        raw = ns(self._state, "config")
        if not raw:
            raise InvalidState("config_not_set", "contract configuration has not been set")
        return ContractConfig(**raw)

    def set(self, cfg: ContractConfig, *, any_staked: bool = False) -> ContractConfig:
        """
        Replace the configuration.

        The lockup currency cannot change while any candidate still holds
        stake, because locked balances would then be in a different symbol
        than the bond they are compared against.

        Pay is always funded from a separate account; custody held by the
        program account only leaves through unstake.
        """
        if self.program_account and cfg.pay_account == self.program_account:
            raise ConstraintViolation(
                "pay_from_custody",
                "pay_account cannot be the program account",
            )
        if cfg.auditor_pay.amount > 0 and not cfg.pay_account:
            raise ConstraintViolation("pay_account_required", "a non-zero auditor_pay needs a pay_account")
        if self.is_set() and any_staked:
            current = self.get()
            if not current.lockupasset.same_kind(cfg.lockupasset):
                raise ConstraintViolation(
                    "lockup_symbol_locked",
                    "lockup asset symbol cannot change while candidates hold stake",
                )
        raw = ns(self._state, "config")
        raw.clear()
        raw.update(cfg.to_dict())
        return cfg
