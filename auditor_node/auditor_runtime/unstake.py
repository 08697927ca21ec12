from __future__ import annotations

"""UnstakeManager: releases a candidate's locked stake once it is eligible."""

import logging
from typing import Any, Callable, Dict, Optional

from .candidates import CandidateRegistry
from .errors import InvalidState
from .roster import AuditorRoster
from .token_ledger import TokenLedger

log = logging.getLogger(__name__)


class UnstakeManager:
    def __init__(
        self,
        program_account: str,
        candidates: CandidateRegistry,
        ledger: TokenLedger,
        clock: Callable[[], int],
        roster: Optional[AuditorRoster] = None,
    ):
        self.program_account = program_account
        self.candidates = candidates
        self.roster = roster
        self.ledger = ledger
        self._clock = clock

    def unstake(self, name: str) -> Dict[str, Any]:
        cand = self.candidates.get(name)
        if cand is None:
            raise InvalidState("not_a_candidate", f"{name} has never staked")
        if cand.is_active:
            raise InvalidState("candidate_active", "withdraw the candidacy before unstaking")
        if self.roster is not None and name in self.roster:
            raise InvalidState("auditor_seated", f"{name} holds an auditor seat")
        now = int(self._clock())
        if now < cand.unstaking_end_time_stamp:
            raise InvalidState(
                "stake_locked",
                f"stake is locked until {cand.unstaking_end_time_stamp}",
                unlock_at=cand.unstaking_end_time_stamp,
                now=now,
            )
        if cand.locked_tokens.amount <= 0:
            raise InvalidState("nothing_staked", f"{name} has no locked stake")

        released = cand.locked_tokens
        # Zero the record before the payout so the credit notice observes the
        # post-release stake.
        cand.locked_tokens = released.zero()
        cand.lockup_enforced = False
        self.candidates.put(cand)
        self.ledger.transfer(self.program_account, name, released, "unstake")

        log.info("stake released candidate=%s quantity=%s", name, released)
        return {"candidate": name, "released": str(released)}
