from __future__ import annotations

"""
Auditor Executor

Owns the state document and applies operations to it:

- one operation at a time (process-wide lock; the API threadpool may call in parallel)
- snapshot -> dispatch -> persist -> commit; the snapshot is restored on any
  rejection and when the state cannot be written to disk
- event journal of committed operations (newtenure's advisory list + message land here)
- JSON snapshot persistence after every commit
- genesis bootstrap from Settings (token creation/issuance, contract config, grants)

The executor is passed explicitly to whoever needs it (the FastAPI app keeps it
on `app.state.executor`); there is no module-level instance.
"""

import copy
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from .auditor_runtime.asset import Asset
from .auditor_runtime.atomic_store import StateStore
from .auditor_runtime.authority import AuthLevel
from .auditor_runtime.config import ContractConfig
from .auditor_runtime.context import RuntimeContext, build_context
from .auditor_runtime.errors import AuditorError
from .auditor_runtime.operations import Operation, OperationKind, dispatch
from .auditor_runtime.state import list_ns, new_state, replace_in_place
from .settings import Settings

log = logging.getLogger(__name__)

MAX_EVENTS = 10_000


def _now() -> int:
    return int(time.time())


class AuditorExecutor:
    def __init__(
        self,
        program_account: str = "auditor.bos",
        *,
        clock: Optional[Callable[[], int]] = None,
        store: Optional[StateStore] = None,
        state: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.program_account = program_account
        self.clock = clock or _now
        self.store = store
        self.state: Dict[str, Any] = state if state is not None else new_state()
        self.ctx: RuntimeContext = build_context(self.state, program_account, self.clock)
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Boot
    # ------------------------------------------------------------------

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        clock: Optional[Callable[[], int]] = None,
    ) -> "AuditorExecutor":
        store: Optional[StateStore] = None
        loaded: Optional[Dict[str, Any]] = None
        if settings.persistence.enabled:
            store = StateStore(
                settings.data_dir(),
                filename=settings.persistence.filename,
                keep_backups=settings.persistence.keep_backups,
            )
            loaded = store.load()

        ex = cls(settings.node.program_account, clock=clock, store=store, state=loaded)
        if loaded is None:
            ex.genesis(settings)
        else:
            log.info("state loaded from %s", store.path if store else "-")
        return ex

    def genesis(self, settings: Settings) -> None:
        """First-boot bootstrap. Not an operation: no authority checks apply."""
        with self._lock:
            ledger = self.ctx.ledger
            for max_supply in settings.token.create:
                supply = Asset.parse(max_supply)
                ledger.create(supply.symbol, supply)
            for item in settings.token.issue:
                ledger.issue(item.to, Asset.parse(item.quantity))
            if settings.contract:
                self.ctx.config.set(ContractConfig(**settings.contract))
            for account in settings.node.mid_authority:
                self.ctx.authority.grant(account, AuthLevel.MID)
            log.info(
                "genesis applied program=%s tokens=%s configured=%s",
                self.program_account,
                ",".join(settings.token.create) or "-",
                self.ctx.config.is_set(),
            )
            self._persist()

    # ------------------------------------------------------------------
    # Atomic apply
    # ------------------------------------------------------------------

    def _snapshot(self) -> Dict[str, Any]:
        return {k: copy.deepcopy(v) for k, v in self.state.items() if k != "events"}

    def _restore(self, snap: Dict[str, Any]) -> None:
        restored = dict(snap)
        restored["events"] = self.state.get("events", [])
        replace_in_place(self.state, restored)

    def _record(self, op: Operation, result: Dict[str, Any]) -> int:
        events = list_ns(self.state, "events")
        seq = (events[-1]["seq"] + 1) if events else 1
        events.append(
            {
                "seq": seq,
                "kind": OperationKind(op.kind).value,
                "caller": op.caller,
                "ts": self.ctx.now(),
                "params": op.params,
                "result": result,
            }
        )
        if len(events) > MAX_EVENTS:
            del events[: len(events) - MAX_EVENTS]
        return seq

    def _persist(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save(self.state)
        except OSError:
            log.exception("failed to persist state to %s", self.store.path)
            raise

    def apply(self, op: Operation) -> Dict[str, Any]:
        label = getattr(op.kind, "value", str(op.kind))
        with self._lock:
            snap = self._snapshot()
            try:
                result = dispatch(self.ctx, op)
            except AuditorError as e:
                self._restore(snap)
                log.warning("rejected %s by %s: %s (%s)", label, op.caller or "-", e.code, e.message)
                raise
            except Exception:
                self._restore(snap)
                log.exception("operation %s crashed; state restored", label)
                raise

            seq = self._record(op, result)
            try:
                self._persist()
            except OSError:
                # not durable, so not committed
                self._restore(snap)
                list_ns(self.state, "events").pop()
                raise
            log.info("committed %s by %s seq=%s", label, op.caller or "-", seq)
            return {"ok": True, "kind": label, "seq": seq, **result}

    def _run(self, kind: OperationKind, caller: str, **params: Any) -> Dict[str, Any]:
        return self.apply(Operation(kind=kind, caller=caller, params=params))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def transfer(self, caller: str, to: str, quantity: Asset | str, memo: str = "") -> Dict[str, Any]:
        return self._run(OperationKind.TRANSFER, caller, **{"from": caller, "to": to, "quantity": str(quantity), "memo": memo})

    def stake(self, caller: str, quantity: Asset | str) -> Dict[str, Any]:
        return self.transfer(caller, self.program_account, quantity, self.program_account)

    def nominate(self, caller: str, cand: str) -> Dict[str, Any]:
        return self._run(OperationKind.NOMINATE, caller, cand=cand)

    def withdraw(self, caller: str, cand: str) -> Dict[str, Any]:
        return self._run(OperationKind.WITHDRAW, caller, cand=cand)

    def fire_candidate(self, caller: str, cand: str, lockup_stake: bool = False) -> Dict[str, Any]:
        return self._run(OperationKind.FIRE_CANDIDATE, caller, cand=cand, lockup_stake=bool(lockup_stake))

    def resign(self, caller: str, auditor: str) -> Dict[str, Any]:
        return self._run(OperationKind.RESIGN, caller, auditor=auditor)

    def fire_auditor(self, caller: str, auditor: str) -> Dict[str, Any]:
        return self._run(OperationKind.FIRE_AUDITOR, caller, auditor=auditor)

    def update_bio(self, caller: str, cand: str, bio: str) -> Dict[str, Any]:
        return self._run(OperationKind.UPDATE_BIO, caller, cand=cand, bio=bio)

    def vote(self, caller: str, voter: str, candidates: List[str]) -> Dict[str, Any]:
        return self._run(OperationKind.VOTE, caller, voter=voter, candidates=list(candidates))

    def new_tenure(self, caller: str, candidates: Optional[List[str]] = None, message: str = "") -> Dict[str, Any]:
        return self._run(OperationKind.NEW_TENURE, caller, candidates=list(candidates or []), message=message)

    def unstake(self, caller: str, cand: str) -> Dict[str, Any]:
        return self._run(OperationKind.UNSTAKE, caller, cand=cand)

    def update_config(self, caller: str, config: ContractConfig | Dict[str, Any]) -> Dict[str, Any]:
        raw = config.to_dict() if isinstance(config, ContractConfig) else dict(config)
        return self._run(OperationKind.UPDATE_CONFIG, caller, config=raw)

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------

    def candidates(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [c.to_dict() for c in self.ctx.candidates.all()]

    def candidate(self, name: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            cand = self.ctx.candidates.get(name)
            if cand is None:
                return None
            out = cand.to_dict()
            out["bio"] = self.ctx.bios.get(name)
            out["is_auditor"] = name in self.ctx.roster
            return out

    def auditors(self) -> List[str]:
        with self._lock:
            return self.ctx.roster.names()

    def votes(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [v.to_dict() for v in self.ctx.votes.all()]

    def vote_of(self, voter: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            rec = self.ctx.votes.get(voter)
            return rec.to_dict() if rec else None

    def config(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self.ctx.config.get().to_dict() if self.ctx.config.is_set() else None

    def balances(self, account: str) -> Dict[str, int]:
        with self._lock:
            return self.ctx.ledger.balances(account)

    def tenure(self) -> Dict[str, Any]:
        with self._lock:
            status = self.ctx.election.tenure_status()
            if self.ctx.config.is_set():
                status["quorum"] = self.ctx.election.quorum_report(self.ctx.cfg()).to_dict()
            policy = None
            if self.ctx.config.is_set():
                p = self.ctx.authority.get_policy(self.ctx.cfg().authaccount)
                policy = p.to_dict() if p else None
            status["policy"] = policy
            return status

    def events(self, limit: int = 100) -> List[Dict[str, Any]]:
        with self._lock:
            events = list_ns(self.state, "events")
            return list(events[-max(0, int(limit)):]) if limit else []

    def stake_audit(self) -> Dict[str, Any]:
        """Locked stake vs custodied balance per symbol; `balanced` must always hold."""
        with self._lock:
            out: Dict[str, Any] = {"balanced": True, "symbols": {}}
            custody = self.ctx.ledger.balances(self.program_account)
            symbols = set(custody) | {c.locked_tokens.symbol for c in self.ctx.candidates.all()}
            for sym in sorted(symbols):
                locked = self.ctx.candidates.total_locked(sym)
                held = int(custody.get(sym, 0))
                out["symbols"][sym] = {"locked": locked, "custody": held}
                if locked != held:
                    out["balanced"] = False
            return out

    def health(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "ok": True,
                "program_account": self.program_account,
                "configured": self.ctx.config.is_set(),
                "candidates": len(self.ctx.candidates),
                "active_candidates": len(self.ctx.candidates.active()),
                "auditors": len(self.ctx.roster),
                "voters": len(self.ctx.votes),
            }
