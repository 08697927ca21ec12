import pytest

from auditor_node.auditor_runtime.asset import Asset
from auditor_node.auditor_runtime.candidates import Candidate, CandidateRegistry
from auditor_node.auditor_runtime.errors import ConstraintViolation
from auditor_node.auditor_runtime.stake import StakeLedgerHook
from auditor_node.auditor_runtime.state import new_state
from auditor_node.auditor_runtime.token_ledger import CreditNotice

PROGRAM = "auditor.bos"
DELAY = 3600


@pytest.fixture
def hook():
    now = {"t": 1000}
    cands = CandidateRegistry(new_state())
    h = StakeLedgerHook(PROGRAM, cands, lambda: DELAY, lambda: now["t"])
    h.now = now
    return h


def _credit(frm, qty, to=PROGRAM):
    return CreditNotice(frm, to, Asset.parse(qty), "")


def test_ignores_credits_to_other_accounts(hook):
    assert hook.on_credit(_credit("alice", "5.0000 BOS", to="bob")) is None
    assert len(hook.candidates) == 0


def test_first_credit_creates_inactive_candidate(hook):
    hook(_credit("alice", "5.0000 BOS"))
    cand = hook.candidates.get("alice")
    assert cand.is_active is False
    assert cand.total_votes == 0
    assert str(cand.locked_tokens) == "5.0000 BOS"
    assert cand.unstaking_end_time_stamp == 1000 + DELAY


def test_further_credit_adds_and_resets_release(hook):
    hook(_credit("alice", "5.0000 BOS"))
    hook.now["t"] = 2000
    hook(_credit("alice", "2.5000 BOS"))
    cand = hook.candidates.get("alice")
    assert str(cand.locked_tokens) == "7.5000 BOS"
    assert cand.unstaking_end_time_stamp == 2000 + DELAY


def test_enforced_lock_survives_new_credit(hook):
    hook.candidates.put(
        Candidate("alice", Asset.parse("5.0000 BOS"), unstaking_end_time_stamp=99999, lockup_enforced=True)
    )
    hook(_credit("alice", "1.0000 BOS"))
    cand = hook.candidates.get("alice")
    assert cand.lockup_enforced is True
    assert cand.unstaking_end_time_stamp == 99999


def test_mixed_symbols_rejected(hook):
    hook(_credit("alice", "5.0000 BOS"))
    with pytest.raises(ConstraintViolation) as ei:
        hook(_credit("alice", "1.0000 XYZ"))
    assert ei.value.code == "stake_symbol_mismatch"
    assert str(hook.candidates.get("alice").locked_tokens) == "5.0000 BOS"
