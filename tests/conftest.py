import pytest

from auditor_node.auditor_executor import AuditorExecutor
from auditor_node.settings import Settings

PROGRAM = "auditor.bos"
DAY = 24 * 3600
BOND = "1000.0000 BOS"

VOTERS = ("alice", "bob", "carol", "dave", "erin", "frank")


class FakeClock:
    """Injectable clock: unix seconds, advanced by hand."""

    def __init__(self, start=1_700_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += int(seconds)


def make_settings(**contract):
    base = {
        "lockupasset": BOND,
        "maxvotes": 3,
        "numelected": 3,
        "authaccount": "auditor.ops",
        "auth_threshold_auditors": 2,
        "lockup_release_time_delay": 7 * DAY,
        "periodlength": 7 * DAY,
        "initial_vote_quorum_percent": 15,
        "vote_quorum_percent": 10,
        "auditor_pay": "0.0000 BOS",
        "pay_account": "auditor.pay",
    }
    base.update(contract)
    issue = [{"to": name, "quantity": "10000.0000 BOS"} for name in VOTERS]
    issue.append({"to": "auditor.pay", "quantity": "1000.0000 BOS"})
    issue.append({"to": "erin", "quantity": "100.0000 XYZ"})
    return Settings(
        persistence={"enabled": False},
        node={"program_account": PROGRAM, "mid_authority": ["auditor.mod"]},
        token={"create": ["100000.0000 BOS", "1000.0000 XYZ"], "issue": issue},
        contract=base,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def executor(settings, clock):
    """Fresh in-memory executor per test, genesis applied."""
    return AuditorExecutor.from_settings(settings, clock=clock)


def enroll(ex, name, quantity=BOND):
    """Stake the bond and nominate."""
    ex.stake(name, quantity)
    return ex.nominate(name, name)


@pytest.fixture
def enrolled(executor):
    for name in ("alice", "bob", "carol"):
        enroll(executor, name)
    return executor
