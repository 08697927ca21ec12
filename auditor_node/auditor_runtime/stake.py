from __future__ import annotations

"""
StakeLedgerHook: turns completed credits to the program account into locked
stake on the sender's candidate record.

No authority is checked here beyond "the ledger says the credit happened".
Every credit restarts the release clock at now + lockup_release_time_delay.
An enforced lockup from an earlier departure stays enforced and is never
shortened by a credit.
"""

import logging
from typing import Callable

from .asset import Asset
from .candidates import Candidate, CandidateRegistry
from .errors import ConstraintViolation
from .token_ledger import CreditNotice

log = logging.getLogger(__name__)


class StakeLedgerHook:
    def __init__(
        self,
        program_account: str,
        candidates: CandidateRegistry,
        release_delay: Callable[[], int],
        clock: Callable[[], int],
    ):
        self.program_account = program_account
        self.candidates = candidates
        self._release_delay = release_delay
        self._clock = clock

    def __call__(self, notice: CreditNotice) -> None:
        self.on_credit(notice)

    def on_credit(self, notice: CreditNotice) -> Candidate | None:
        if notice.to_account != self.program_account:
            return None

        unlock_at = int(self._clock()) + int(self._release_delay())
        quantity: Asset = notice.quantity
        cand = self.candidates.get(notice.from_account)

        if cand is None:
            cand = Candidate(
                candidate_name=notice.from_account,
                locked_tokens=quantity,
                total_votes=0,
                is_active=False,
                unstaking_end_time_stamp=unlock_at,
            )
        else:
            if cand.locked_tokens.amount == 0 and not cand.locked_tokens.same_kind(quantity):
                # Fully released record: restart in the new currency.
                cand.locked_tokens = quantity.zero()
            if not cand.locked_tokens.same_kind(quantity):
                raise ConstraintViolation(
                    "stake_symbol_mismatch",
                    f"{notice.from_account} has stake in {cand.locked_tokens.symbol}, got {quantity.symbol}",
                )
            cand.locked_tokens = cand.locked_tokens + quantity
            if cand.lockup_enforced:
                unlock_at = max(unlock_at, cand.unstaking_end_time_stamp)
            cand.unstaking_end_time_stamp = unlock_at

        self.candidates.put(cand)
        log.info(
            "stake credited candidate=%s quantity=%s locked=%s unlock_at=%s",
            cand.candidate_name,
            quantity,
            cand.locked_tokens,
            unlock_at,
        )
        return cand
