import pytest

from auditor_node.auditor_runtime.errors import InvalidState

from conftest import BOND, DAY, PROGRAM, enroll


def test_unstake_waits_for_release_time(executor, clock):
    executor.stake("alice", BOND)
    unlock_at = clock.now + 7 * DAY
    assert executor.candidate("alice")["unstaking_end_time_stamp"] == unlock_at

    clock.advance(7 * DAY - 1)
    with pytest.raises(InvalidState) as ei:
        executor.unstake("alice", "alice")
    assert ei.value.code == "stake_locked"
    assert ei.value.detail["unlock_at"] == unlock_at

    clock.advance(1)
    r = executor.unstake("alice", "alice")
    assert r == {"ok": True, "kind": "unstake", "seq": r["seq"], "candidate": "alice", "released": BOND}
    assert executor.candidate("alice")["locked_tokens"] == "0.0000 BOS"

    with pytest.raises(InvalidState) as ei:
        executor.unstake("alice", "alice")
    assert ei.value.code == "nothing_staked"


def test_new_credit_restarts_the_clock(executor, clock):
    executor.stake("alice", BOND)
    clock.advance(6 * DAY)
    executor.stake("alice", "1.0000 BOS")
    clock.advance(DAY)
    with pytest.raises(InvalidState):
        executor.unstake("alice", "alice")
    clock.advance(6 * DAY)
    assert executor.unstake("alice", "alice")["released"] == "1001.0000 BOS"


def test_active_candidate_cannot_unstake(executor, clock):
    enroll(executor, "alice")
    clock.advance(30 * DAY)
    with pytest.raises(InvalidState) as ei:
        executor.unstake("alice", "alice")
    assert ei.value.code == "candidate_active"


def test_unknown_candidate(executor):
    with pytest.raises(InvalidState) as ei:
        executor.unstake("zed", "zed")
    assert ei.value.code == "not_a_candidate"


def test_unstake_returns_custody(executor, clock):
    executor.stake("alice", BOND)
    executor.stake("bob", BOND)
    assert executor.balances(PROGRAM)["BOS"] == 2000_0000
    clock.advance(7 * DAY)
    executor.unstake("bob", "bob")
    assert executor.balances(PROGRAM)["BOS"] == 1000_0000
    assert executor.balances("bob")["BOS"] == 10000_0000


def test_restake_after_full_release_in_new_symbol(executor, clock):
    executor.stake("erin", "10.0000 XYZ")
    clock.advance(7 * DAY)
    executor.unstake("erin", "erin")
    executor.stake("erin", BOND)
    cand = executor.candidate("erin")
    assert cand["locked_tokens"] == BOND
    executor.nominate("erin", "erin")
