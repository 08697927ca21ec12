from __future__ import annotations

"""
auditor_node/auditor_runtime/operations.py
------------------------------------------

Caller-facing operations as one closed set.

Each operation is an `Operation(kind, caller, params)` and is run by
`dispatch(ctx, op)`. Every handler checks all of its preconditions first and
then applies its effects. The executor wraps dispatch in a snapshot/rollback
(see auditor_executor.py), so a failure anywhere leaves the state untouched.

Handlers return a plain dict that becomes the body of the receipt.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List

from .asset import Asset
from .authority import AuthLevel
from .config import ContractConfig
from .context import RuntimeContext
from .errors import ConstraintViolation, InvalidState

log = logging.getLogger(__name__)


class OperationKind(str, Enum):
    TRANSFER = "transfer"
    NOMINATE = "nominatecand"
    WITHDRAW = "withdrawcand"
    FIRE_CANDIDATE = "firecand"
    RESIGN = "resign"
    FIRE_AUDITOR = "fireauditor"
    UPDATE_BIO = "updatebio"
    VOTE = "voteauditor"
    NEW_TENURE = "newtenure"
    UNSTAKE = "unstake"
    UPDATE_CONFIG = "updateconfig"


@dataclass
class Operation:
    kind: OperationKind
    caller: str
    params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "caller": self.caller, "params": dict(self.params)}


def _param(op: Operation, key: str) -> Any:
    if key not in op.params:
        raise ConstraintViolation("missing_param", f"{op.kind.value} requires '{key}'")
    return op.params[key]


def _name(op: Operation, key: str) -> str:
    value = str(_param(op, key) or "").strip()
    if not value:
        raise ConstraintViolation("missing_param", f"{op.kind.value} requires '{key}'")
    return value


# ----------------------------- token -----------------------------


def _op_transfer(ctx: RuntimeContext, op: Operation) -> Dict[str, Any]:
    sender = _name(op, "from")
    ctx.authority.require_auth(op.caller, sender)
    if sender == ctx.program_account:
        # custody is released by unstake only
        raise InvalidState("custody_transfer", f"{sender} funds are locked stake")
    quantity = Asset.from_any(_param(op, "quantity"))
    to = _name(op, "to")
    memo = str(op.params.get("memo", "") or "")
    ctx.ledger.transfer(sender, to, quantity, memo)
    out: Dict[str, Any] = {"from": sender, "to": to, "quantity": str(quantity), "memo": memo}
    if to == ctx.program_account:
        cand = ctx.candidates.get(sender)
        if cand is not None:
            out["locked_tokens"] = str(cand.locked_tokens)
    return out


# ----------------------------- candidates -----------------------------


def _op_nominate(ctx: RuntimeContext, op: Operation) -> Dict[str, Any]:
    name = _name(op, "cand")
    ctx.authority.require_auth(op.caller, name)
    cfg = ctx.cfg()

    cand = ctx.candidates.get(name)
    if cand is not None and cand.is_active:
        raise InvalidState("already_nominated", f"{name} is already an active candidate")

    if cand is None or cand.locked_tokens.amount <= 0:
        raise ConstraintViolation(
            "insufficient_stake",
            f"transfer at least {cfg.lockupasset} to {ctx.program_account} before nominating",
        )
    if not cand.locked_tokens.same_kind(cfg.lockupasset):
        raise ConstraintViolation(
            "symbol_mismatch",
            f"locked {cand.locked_tokens.symbol} does not match bond {cfg.lockupasset.symbol}",
        )
    if cand.locked_tokens < cfg.lockupasset:
        raise ConstraintViolation(
            "insufficient_stake",
            f"locked {cand.locked_tokens} is below the required {cfg.lockupasset}",
        )

    cand.is_active = True
    ctx.candidates.put(cand)
    return {"candidate": cand.to_dict()}


def _op_withdraw(ctx: RuntimeContext, op: Operation) -> Dict[str, Any]:
    name = _name(op, "cand")
    ctx.authority.require_auth(op.caller, name)
    cand = ctx.candidates.get(name)
    if cand is None or not cand.is_active:
        raise InvalidState("not_nominated", f"{name} is not an active candidate")

    cand.is_active = False
    # Only the credit cooldown is waived; a departure lockup, or a seat that is
    # still held, keeps the stake where it is.
    if not cand.lockup_enforced and name not in ctx.roster:
        cand.unstaking_end_time_stamp = ctx.now()
    ctx.candidates.put(cand)
    return {"candidate": cand.to_dict()}


def _op_fire_candidate(ctx: RuntimeContext, op: Operation) -> Dict[str, Any]:
    name = _name(op, "cand")
    lockup = bool(op.params.get("lockup_stake", False))
    ctx.authority.require_level(op.caller, AuthLevel.MID)
    cand = ctx.candidates.get(name)
    if cand is None or not cand.is_active:
        raise InvalidState("not_nominated", f"{name} is not an active candidate")

    cand.is_active = False
    if lockup:
        cand.unstaking_end_time_stamp = ctx.now() + int(ctx.cfg().lockup_release_time_delay)
        cand.lockup_enforced = True
    ctx.candidates.put(cand)
    return {"candidate": cand.to_dict(), "lockup_stake": lockup}


def _op_update_bio(ctx: RuntimeContext, op: Operation) -> Dict[str, Any]:
    name = _name(op, "cand")
    ctx.authority.require_auth(op.caller, name)
    bio = _param(op, "bio")
    ctx.bios.set(name, bio)
    return {"candidate": name, "bio_chars": len(bio)}


def _op_unstake(ctx: RuntimeContext, op: Operation) -> Dict[str, Any]:
    name = _name(op, "cand")
    ctx.authority.require_auth(op.caller, name)
    return ctx.unstaker.unstake(name)


# ----------------------------- auditors -----------------------------


def _op_resign(ctx: RuntimeContext, op: Operation) -> Dict[str, Any]:
    name = _name(op, "auditor")
    ctx.authority.require_auth(op.caller, name)
    return ctx.election.remove_auditor(name)


def _op_fire_auditor(ctx: RuntimeContext, op: Operation) -> Dict[str, Any]:
    name = _name(op, "auditor")
    ctx.authority.require_level(op.caller, AuthLevel.MID)
    return ctx.election.remove_auditor(name)


def _op_new_tenure(ctx: RuntimeContext, op: Operation) -> Dict[str, Any]:
    advisory: List[str] = [str(c) for c in (op.params.get("candidates") or [])]
    message = str(op.params.get("message", "") or "")
    plan = ctx.election.new_tenure(advisory, message)
    return {"tenure": plan.to_dict()}


# ----------------------------- votes -----------------------------


def _op_vote(ctx: RuntimeContext, op: Operation) -> Dict[str, Any]:
    voter = _name(op, "voter")
    ctx.authority.require_auth(op.caller, voter)
    if voter == ctx.program_account:
        raise ConstraintViolation("program_account_vote", "custodied stake carries no voting weight")
    names = op.params.get("candidates") or []
    if not isinstance(names, (list, tuple)):
        raise ConstraintViolation("invalid_vote", "candidates must be a list")
    cfg = ctx.cfg()
    rec = ctx.tally.cast(voter, list(names), ctx.voter_weight(voter), maxvotes=cfg.maxvotes)
    return {"voter": voter, "vote": rec.to_dict() if rec else None}


# ----------------------------- config -----------------------------


def _op_update_config(ctx: RuntimeContext, op: Operation) -> Dict[str, Any]:
    ctx.authority.require_level(op.caller, AuthLevel.CONTRACT)
    raw = _param(op, "config")
    try:
        cfg = raw if isinstance(raw, ContractConfig) else ContractConfig(**dict(raw))
    except (TypeError, ValueError) as e:
        raise ConstraintViolation("invalid_config", str(e)) from e
    ctx.config.set(cfg, any_staked=ctx.candidates.any_staked())
    return {"config": cfg.to_dict()}


# ----------------------------- dispatcher -----------------------------

Handler = Callable[[RuntimeContext, Operation], Dict[str, Any]]

HANDLERS: Dict[OperationKind, Handler] = {
    OperationKind.TRANSFER: _op_transfer,
    OperationKind.NOMINATE: _op_nominate,
    OperationKind.WITHDRAW: _op_withdraw,
    OperationKind.FIRE_CANDIDATE: _op_fire_candidate,
    OperationKind.RESIGN: _op_resign,
    OperationKind.FIRE_AUDITOR: _op_fire_auditor,
    OperationKind.UPDATE_BIO: _op_update_bio,
    OperationKind.VOTE: _op_vote,
    OperationKind.NEW_TENURE: _op_new_tenure,
    OperationKind.UNSTAKE: _op_unstake,
    OperationKind.UPDATE_CONFIG: _op_update_config,
}


def dispatch(ctx: RuntimeContext, op: Operation) -> Dict[str, Any]:
    try:
        kind = OperationKind(op.kind)
    except ValueError as e:
        raise ConstraintViolation("unsupported_operation", f"unsupported operation {op.kind}") from e
    handler = HANDLERS.get(kind)
    log.debug("dispatch %s caller=%s", kind.value, op.caller or "-")
    if handler is None:
        raise ConstraintViolation("unsupported_operation", f"unsupported operation {op.kind}")
    return handler(ctx, Operation(kind=kind, caller=op.caller, params=op.params))
