from __future__ import annotations

"""
RuntimeContext: the repositories and collaborators one operation runs against.

Built once per state document. Nothing here is a module-level singleton; the
executor owns a context and hands it to every operation handler.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict

from .authority import Authority
from .bios import BioStore
from .candidates import CandidateRegistry
from .config import ConfigStore, ContractConfig
from .election import ElectionEngine
from .roster import AuditorRoster
from .stake import StakeLedgerHook
from .tally import VoteTallyEngine
from .token_ledger import CreditNotice, TokenLedger
from .unstake import UnstakeManager
from .votes import VoteRegistry


def _now() -> int:
    return int(time.time())


@dataclass
class RuntimeContext:
    state: Dict[str, Any]
    program_account: str
    clock: Callable[[], int]
    config: ConfigStore
    candidates: CandidateRegistry
    votes: VoteRegistry
    roster: AuditorRoster
    bios: BioStore
    ledger: TokenLedger
    authority: Authority
    tally: VoteTallyEngine
    stake_hook: StakeLedgerHook
    election: ElectionEngine
    unstaker: UnstakeManager

    def now(self) -> int:
        return int(self.clock())

    def cfg(self) -> ContractConfig:
        return self.config.get()

    def voter_weight(self, account: str) -> int:
        """Effective weight: liquid balance of the lockup currency."""
        symbol = self.cfg().lockupasset.symbol
        if not self.ledger.has_symbol(symbol):
            return 0
        return self.ledger.balance_of(account, symbol)

    def refresh_weights(self, notice: CreditNotice) -> None:
        """Keep cast weights in step with balances after every transfer."""
        if not self.config.is_set():
            return
        if notice.quantity.symbol != self.cfg().lockupasset.symbol:
            return
        for account in (notice.from_account, notice.to_account):
            if account == self.program_account:
                continue
            if self.votes.get(account) is not None:
                self.tally.refresh_weight(account, self.voter_weight(account))


def build_context(
    state: Dict[str, Any],
    program_account: str,
    clock: Callable[[], int] = _now,
) -> RuntimeContext:
    config = ConfigStore(state, program_account)
    candidates = CandidateRegistry(state)
    votes = VoteRegistry(state)
    roster = AuditorRoster(state)
    ledger = TokenLedger(state)

    def _auth_account() -> str:
        return config.get().authaccount if config.is_set() else ""

    def _release_delay() -> int:
        return int(config.get().lockup_release_time_delay) if config.is_set() else 0

    authority = Authority(state, program_account, auth_account=_auth_account)
    tally = VoteTallyEngine(candidates, votes)
    stake_hook = StakeLedgerHook(program_account, candidates, _release_delay, clock)
    election = ElectionEngine(
        state, candidates, votes, roster, ledger, authority, config.get, clock
    )
    unstaker = UnstakeManager(program_account, candidates, ledger, clock, roster=roster)

    ctx = RuntimeContext(
        state=state,
        program_account=program_account,
        clock=clock,
        config=config,
        candidates=candidates,
        votes=votes,
        roster=roster,
        bios=BioStore(state),
        ledger=ledger,
        authority=authority,
        tally=tally,
        stake_hook=stake_hook,
        election=election,
        unstaker=unstaker,
    )

    # Stake first, then weights: both see the same completed credit.
    ledger.subscribe(stake_hook)
    ledger.subscribe(ctx.refresh_weights)
    return ctx
