from __future__ import annotations

"""
auditor_node/auditor_runtime/election.py
----------------------------------------

ElectionEngine: the tenure rotation.

newtenure is open to any caller, but its outcome depends only on registry
state. The caller's candidate list is advisory and only ends up in the event
journal.

Rotation happens in two steps:

    plan_tenure()  -> RotationPlan     (checks gates, ranks, computes effects; mutates nothing)
    apply_plan()                       (commits the plan)

Gates, re-evaluated on every call:

1. Period: a previous successful rotation must be at least `periodlength`
   seconds old. The first rotation has no period gate.
2. Quorum: cumulative cast weight / max supply of the lockup token must reach
   `initial_vote_quorum_percent` until the first success, and
   `vote_quorum_percent` afterwards.

Selection: active candidates with total_votes > 0, sorted by
(-total_votes, candidate_name), top `numelected`. The committee is never
padded with zero-vote candidates and may be smaller than `numelected`. When
no candidate qualifies at all the rotation is refused (InvalidState
`no_eligible_candidates`) rather than seating an empty committee, since an
empty policy cannot control the managed account.

Pay: a flat `auditor_pay` per incoming auditor per tenure, funded by
`pay_account`.

The same ranking fills seats vacated by resign / fireauditor between
rotations (`fill_vacancies`). That path has no quorum gate, no pay, and
leaves the period clock alone.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .authority import AUDITORS_PERMISSION, Authority, AuthPolicy
from .candidates import CandidateRegistry
from .config import ContractConfig
from .errors import InvalidState, PeriodNotElapsed, QuorumNotMet
from .roster import AuditorRoster
from .state import ns
from .token_ledger import TokenLedger
from .votes import VoteRegistry

log = logging.getLogger(__name__)


@dataclass
class QuorumReport:
    cast: int
    total: int
    required_percent: int
    initial: bool

    @property
    def met(self) -> bool:
        # integer form of cast / total >= percent / 100
        return self.total > 0 and self.cast * 100 >= self.required_percent * self.total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cast": self.cast,
            "total": self.total,
            "required_percent": self.required_percent,
            "initial": self.initial,
            "met": self.met,
        }


@dataclass
class RotationPlan:
    now: int
    selected: List[str]
    departing: List[str]
    pay_each: str
    policy: AuthPolicy
    quorum: QuorumReport
    advisory: List[str] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "now": self.now,
            "selected": list(self.selected),
            "departing": list(self.departing),
            "pay_each": self.pay_each,
            "policy": self.policy.to_dict(),
            "quorum": self.quorum.to_dict(),
            "advisory": list(self.advisory),
            "message": self.message,
        }


class ElectionEngine:
    def __init__(
        self,
        state: Dict[str, Any],
        candidates: CandidateRegistry,
        votes: VoteRegistry,
        roster: AuditorRoster,
        ledger: TokenLedger,
        authority: Authority,
        config: Callable[[], ContractConfig],
        clock: Callable[[], int],
    ):
        self._state = state
        self.candidates = candidates
        self.votes = votes
        self.roster = roster
        self.ledger = ledger
        self.authority = authority
        self._config = config
        self._clock = clock

    # ------------------------------------------------------------------
    # Tenure bookkeeping
    # ------------------------------------------------------------------

    def _tenure(self) -> Dict[str, Any]:
        t = ns(self._state, "tenure")
        t.setdefault("last_period_time", None)
        t.setdefault("met_initial_votes_threshold", False)
        return t

    def tenure_status(self) -> Dict[str, Any]:
        return dict(self._tenure())

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def check_period(self, now: int, cfg: ContractConfig) -> None:
        last = self._tenure()["last_period_time"]
        if last is None:
            return
        ready_at = int(last) + int(cfg.periodlength)
        if now < ready_at:
            raise PeriodNotElapsed(
                "period_not_elapsed",
                f"next tenure allowed at {ready_at}",
                now=now,
                ready_at=ready_at,
            )

    def quorum_report(self, cfg: ContractConfig) -> QuorumReport:
        initial = not bool(self._tenure()["met_initial_votes_threshold"])
        symbol = cfg.lockupasset.symbol
        total = self.ledger.max_supply(symbol) if self.ledger.has_symbol(symbol) else 0
        return QuorumReport(
            cast=self.votes.cumulative_weight(),
            total=total,
            required_percent=cfg.initial_vote_quorum_percent if initial else cfg.vote_quorum_percent,
            initial=initial,
        )

    def check_quorum(self, cfg: ContractConfig) -> QuorumReport:
        report = self.quorum_report(cfg)
        if not report.met:
            code = "initial_quorum_not_met" if report.initial else "quorum_not_met"
            raise QuorumNotMet(code, "voter engagement below threshold", **report.to_dict())
        return report

    # ------------------------------------------------------------------
    # Selection / policy
    # ------------------------------------------------------------------

    def select(self, seats: int, exclude: Optional[set] = None) -> List[str]:
        if seats <= 0:
            return []
        return [c.candidate_name for c in self.candidates.ranked(exclude=exclude)[:seats]]

    def derive_policy(self, members: List[str], cfg: ContractConfig) -> AuthPolicy:
        accounts: Tuple[str, ...] = tuple(sorted(members))
        threshold = min(int(cfg.auth_threshold_auditors), len(accounts))
        if threshold < int(cfg.auth_threshold_auditors):
            log.warning(
                "auth threshold clamped to committee size threshold=%s seats=%s",
                cfg.auth_threshold_auditors,
                len(accounts),
            )
        return AuthPolicy(
            account=cfg.authaccount,
            permission=AUDITORS_PERMISSION,
            threshold=max(1, threshold),
            accounts=accounts,
        )

    def _lock_departing(self, name: str, now: int, cfg: ContractConfig) -> None:
        cand = self.candidates.get(name)
        if cand is None:
            raise InvalidState("tally_inconsistent", f"auditor {name} has no candidate record")
        cand.is_active = False
        cand.unstaking_end_time_stamp = now + int(cfg.lockup_release_time_delay)
        cand.lockup_enforced = True
        self.candidates.put(cand)

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------

    def plan_tenure(self, advisory: Optional[List[str]] = None, message: str = "") -> RotationPlan:
        cfg = self._config()
        now = int(self._clock())

        self.check_period(now, cfg)
        report = self.check_quorum(cfg)

        selected = self.select(int(cfg.numelected))
        if not selected:
            raise InvalidState("no_eligible_candidates", "no active candidate has votes")

        chosen = set(selected)
        departing = [n for n in self.roster.names() if n not in chosen]
        pay_each = cfg.auditor_pay

        return RotationPlan(
            now=now,
            selected=selected,
            departing=departing,
            pay_each=str(pay_each),
            policy=self.derive_policy(selected, cfg),
            quorum=report,
            advisory=[str(a) for a in (advisory or [])],
            message=message or "",
        )

    def apply_plan(self, plan: RotationPlan) -> None:
        cfg = self._config()

        for name in plan.departing:
            self._lock_departing(name, plan.now, cfg)

        self.roster.replace(plan.selected)

        pay = cfg.auditor_pay
        if pay.amount > 0:
            for name in plan.selected:
                self.ledger.transfer(cfg.pay_account, name, pay, "auditor pay")

        self.authority.set_policy(plan.policy)

        t = self._tenure()
        t["last_period_time"] = plan.now
        t["met_initial_votes_threshold"] = True

        log.info(
            "new tenure committee=%s departing=%s pay_each=%s",
            ",".join(plan.selected),
            ",".join(plan.departing) or "-",
            plan.pay_each,
        )

    def new_tenure(self, advisory: Optional[List[str]] = None, message: str = "") -> RotationPlan:
        plan = self.plan_tenure(advisory, message)
        self.apply_plan(plan)
        return plan

    # ------------------------------------------------------------------
    # Mid-tenure removal
    # ------------------------------------------------------------------

    def remove_auditor(self, name: str) -> Dict[str, Any]:
        """Shared tail of resign / fireauditor."""
        if name not in self.roster:
            raise InvalidState("not_an_auditor", f"{name} is not a current auditor")

        cfg = self._config()
        now = int(self._clock())

        self.roster.remove(name)
        self._lock_departing(name, now, cfg)
        added = self.fill_vacancies(cfg)

        members = self.roster.names()
        policy: Optional[AuthPolicy] = None
        if members:
            policy = self.derive_policy(members, cfg)
            self.authority.set_policy(policy)
        else:
            log.warning("committee is empty after removing %s; auth policy left unchanged", name)

        log.info("auditor removed name=%s replacements=%s", name, ",".join(added) or "-")
        return {
            "removed": name,
            "replacements": added,
            "auditors": members,
            "policy": policy.to_dict() if policy else None,
        }

    def fill_vacancies(self, cfg: ContractConfig) -> List[str]:
        open_seats = int(cfg.numelected) - len(self.roster)
        added = self.select(open_seats, exclude=set(self.roster.names()))
        for name in added:
            self.roster.add(name)
        return added
