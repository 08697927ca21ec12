import copy

import pytest

from auditor_node.auditor_executor import AuditorExecutor
from auditor_node.auditor_runtime.errors import (
    InsufficientFunds,
    InvalidState,
    PeriodNotElapsed,
    QuorumNotMet,
)

from conftest import DAY, FakeClock, enroll, make_settings


def _without_events(state):
    return {k: copy.deepcopy(v) for k, v in state.items() if k != "events"}


def test_committee_is_not_padded(enrolled):
    # numelected=3 but only alice and bob carry weight
    enrolled.vote("dave", "dave", ["alice", "bob"])
    enrolled.vote("erin", "erin", ["alice", "bob"])
    r = enrolled.new_tenure("", [], "first tenure")
    assert r["tenure"]["selected"] == ["alice", "bob"]
    assert enrolled.auditors() == ["alice", "bob"]


def test_initial_quorum_gate(enrolled):
    # 10000 of 100000 cast: below the 15% first-run threshold
    enrolled.vote("dave", "dave", ["alice"])
    with pytest.raises(QuorumNotMet) as ei:
        enrolled.new_tenure("")
    assert ei.value.code == "initial_quorum_not_met"
    assert ei.value.detail["cast"] == 10000_0000
    assert enrolled.auditors() == []

    # the gate is re-evaluated on every call
    enrolled.vote("erin", "erin", ["alice"])
    enrolled.new_tenure("")
    assert enrolled.auditors() == ["alice"]
    assert enrolled.tenure()["met_initial_votes_threshold"] is True


def test_steady_state_quorum_uses_lower_threshold(enrolled, clock):
    enrolled.vote("dave", "dave", ["alice"])
    enrolled.vote("erin", "erin", ["bob"])
    enrolled.new_tenure("")

    clock.advance(7 * DAY)
    enrolled.vote("erin", "erin", [])
    # dave alone is exactly 10%
    enrolled.new_tenure("")
    assert enrolled.auditors() == ["alice"]

    clock.advance(7 * DAY)
    enrolled.vote("dave", "dave", [])
    with pytest.raises(QuorumNotMet) as ei:
        enrolled.new_tenure("")
    assert ei.value.code == "quorum_not_met"


def test_second_tenure_inside_period_changes_nothing(enrolled, clock):
    enrolled.vote("dave", "dave", ["alice", "bob"])
    enrolled.vote("erin", "erin", ["carol"])
    enrolled.new_tenure("")

    clock.advance(7 * DAY - 1)
    before = _without_events(enrolled.state)
    events_before = len(enrolled.events(1000))
    with pytest.raises(PeriodNotElapsed):
        enrolled.new_tenure("")
    assert _without_events(enrolled.state) == before
    assert len(enrolled.events(1000)) == events_before

    clock.advance(1)
    enrolled.new_tenure("")


def test_ties_break_by_name_and_advisory_list_is_ignored(clock):
    ex = AuditorExecutor.from_settings(make_settings(numelected=2), clock=clock)
    for name in ("bob", "alice", "carol"):
        enroll(ex, name)
    ex.vote("dave", "dave", ["carol", "bob"])
    ex.vote("erin", "erin", ["carol", "alice"])

    r = ex.new_tenure("frank", ["bob", "carol"], "please pick bob")
    assert r["tenure"]["selected"] == ["carol", "alice"]
    assert ex.auditors() == ["alice", "carol"]

    last = ex.events(1)[0]
    assert last["kind"] == "newtenure"
    assert last["params"]["candidates"] == ["bob", "carol"]
    assert last["params"]["message"] == "please pick bob"


def test_same_registries_select_the_same_committee():
    selections = []
    for advisory in ([], ["carol"], ["frank", "bob", "alice"]):
        ex = AuditorExecutor.from_settings(make_settings(numelected=2), clock=FakeClock())
        for name in ("alice", "bob", "carol"):
            enroll(ex, name)
        ex.vote("dave", "dave", ["alice", "bob", "carol"])
        ex.vote("erin", "erin", ["bob", "carol"])
        selections.append(ex.new_tenure("", advisory)["tenure"]["selected"])
    assert selections == [["bob", "carol"]] * 3


def test_departing_auditors_are_locked(enrolled, clock):
    enrolled.vote("dave", "dave", ["alice", "bob"])
    enrolled.vote("erin", "erin", ["alice", "bob"])
    enrolled.new_tenure("")

    clock.advance(7 * DAY)
    enrolled.vote("dave", "dave", ["carol"])
    enrolled.vote("erin", "erin", ["carol"])
    r = enrolled.new_tenure("")
    assert r["tenure"]["departing"] == ["alice", "bob"]
    assert enrolled.auditors() == ["carol"]

    alice = enrolled.candidate("alice")
    assert alice["is_active"] is False
    assert alice["lockup_enforced"] is True
    assert alice["unstaking_end_time_stamp"] == clock.now + 7 * DAY

    with pytest.raises(InvalidState) as ei:
        enrolled.unstake("alice", "alice")
    assert ei.value.code == "stake_locked"

    # staking again does not lift the departure lock
    enrolled.stake("alice", "1.0000 BOS")
    assert enrolled.candidate("alice")["lockup_enforced"] is True

    clock.advance(7 * DAY)
    assert enrolled.unstake("alice", "alice")["released"] == "1001.0000 BOS"


def test_reelected_auditor_stays_active(enrolled, clock):
    enrolled.vote("dave", "dave", ["alice", "bob"])
    enrolled.vote("erin", "erin", ["alice"])
    enrolled.new_tenure("")
    clock.advance(7 * DAY)
    enrolled.vote("dave", "dave", ["alice", "carol"])
    r = enrolled.new_tenure("")
    assert r["tenure"]["departing"] == ["bob"]
    assert enrolled.candidate("alice")["is_active"] is True
    assert enrolled.candidate("alice")["lockup_enforced"] is False


def test_policy_is_derived_from_roster(enrolled):
    enrolled.vote("dave", "dave", ["alice", "bob", "carol"])
    enrolled.vote("erin", "erin", ["carol"])
    enrolled.new_tenure("")
    policy = enrolled.tenure()["policy"]
    assert policy == {
        "account": "auditor.ops",
        "permission": "auditors",
        "threshold": 2,
        "accounts": ["alice", "bob", "carol"],
    }


def test_threshold_is_clamped_to_committee_size(enrolled):
    enrolled.vote("dave", "dave", ["alice"])
    enrolled.vote("erin", "erin", ["alice"])
    r = enrolled.new_tenure("")
    assert r["tenure"]["policy"]["threshold"] == 1


def test_no_eligible_candidates(enrolled):
    enrolled.vote("dave", "dave", ["alice", "bob"])
    enrolled.vote("erin", "erin", ["alice", "bob"])
    enrolled.withdraw("alice", "alice")
    enrolled.withdraw("bob", "bob")
    with pytest.raises(InvalidState) as ei:
        enrolled.new_tenure("")
    assert ei.value.code == "no_eligible_candidates"
    assert enrolled.tenure()["last_period_time"] is None


def test_flat_pay_to_each_auditor(clock):
    ex = AuditorExecutor.from_settings(make_settings(auditor_pay="10.0000 BOS"), clock=clock)
    for name in ("alice", "bob"):
        enroll(ex, name)
    ex.vote("dave", "dave", ["alice", "bob"])
    ex.vote("erin", "erin", ["alice", "bob"])
    ex.new_tenure("")
    assert ex.balances("alice")["BOS"] == 9010_0000
    assert ex.balances("bob")["BOS"] == 9010_0000
    assert ex.balances("auditor.pay")["BOS"] == 980_0000
    assert ex.stake_audit()["balanced"] is True


def test_unfunded_pay_rolls_back_the_rotation(clock):
    ex = AuditorExecutor.from_settings(make_settings(auditor_pay="600.0000 BOS"), clock=clock)
    for name in ("alice", "bob"):
        enroll(ex, name)
    ex.vote("dave", "dave", ["alice", "bob"])
    ex.vote("erin", "erin", ["alice", "bob"])
    before = _without_events(ex.state)

    with pytest.raises(InsufficientFunds):
        ex.new_tenure("")
    assert _without_events(ex.state) == before
    assert ex.auditors() == []
    assert ex.balances("alice")["BOS"] == 9000_0000
