import pytest
from fastapi.testclient import TestClient

from auditor_node.auditor_api import create_app

from conftest import BOND, DAY, FakeClock, make_settings


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(clock):
    app = create_app(make_settings(), clock=clock)
    return TestClient(app)


def _as(name):
    return {"X-Auditor-Account": name}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["configured"] is True
    assert body["program_account"] == "auditor.bos"


def test_full_election_flow(client, clock):
    for name in ("alice", "bob"):
        r = client.post("/token/stake", json={"quantity": BOND}, headers=_as(name))
        assert r.status_code == 200, r.text
        r = client.post("/candidates/nominate", json={"cand": name}, headers=_as(name))
        assert r.status_code == 200, r.text

    r = client.post("/candidates/bio", json={"cand": "alice", "bio": "auditor since 2019"}, headers=_as("alice"))
    assert r.status_code == 200

    r = client.get("/candidates")
    assert r.json()["count"] == 2

    for voter in ("dave", "erin"):
        r = client.post("/votes", json={"voter": voter, "candidates": ["alice", "bob"]}, headers=_as(voter))
        assert r.status_code == 200, r.text
    assert client.get("/votes/dave").json()["candidates"] == ["alice", "bob"]
    assert client.get("/candidates/alice").json()["total_votes"] == 20000_0000

    r = client.post("/auditors/newtenure", json={"candidates": [], "message": "go"})
    assert r.status_code == 200, r.text
    assert r.json()["tenure"]["selected"] == ["alice", "bob"]
    assert client.get("/auditors").json()["auditors"] == ["alice", "bob"]

    r = client.post("/auditors/newtenure", json={})
    assert r.status_code == 425
    assert r.json()["detail"]["error"] == "period_not_elapsed"

    r = client.post("/auditors/resign", json={"auditor": "alice"}, headers=_as("alice"))
    assert r.status_code == 200
    assert client.get("/auditors").json()["auditors"] == ["bob"]

    r = client.post("/candidates/unstake", json={"cand": "alice"}, headers=_as("alice"))
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "stake_locked"

    clock.advance(7 * DAY)
    r = client.post("/candidates/unstake", json={"cand": "alice"}, headers=_as("alice"))
    assert r.status_code == 200
    assert r.json()["released"] == BOND

    assert client.get("/audit/stake").json()["balanced"] is True
    kinds = [e["kind"] for e in client.get("/events").json()["events"]]
    assert kinds[-1] == "unstake"
    assert "newtenure" in kinds


def test_error_status_mapping(client):
    # ConstraintViolation -> 400
    r = client.post("/candidates/nominate", json={"cand": "alice"}, headers=_as("alice"))
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "insufficient_stake"

    # AuthorizationDenied -> 403
    r = client.post("/candidates/fire", json={"cand": "alice"}, headers=_as("alice"))
    assert r.status_code == 403

    # InsufficientFunds -> 402
    r = client.post("/token/transfer", json={"to": "bob", "quantity": "99999.0000 BOS"}, headers=_as("alice"))
    assert r.status_code == 402
    assert r.json()["detail"]["error"] == "overdrawn_balance"

    # QuorumNotMet -> 425
    r = client.post("/auditors/newtenure", json={})
    assert r.status_code == 425
    assert r.json()["detail"]["error"] == "initial_quorum_not_met"

    # InvalidState -> 409
    r = client.post("/auditors/fire", json={"auditor": "carol"}, headers=_as("auditor.ops"))
    assert r.status_code == 409
    assert r.json()["detail"]["error"] == "not_an_auditor"


def test_mutations_need_an_account(client):
    r = client.post("/candidates/nominate", json={"cand": "alice"})
    assert r.status_code == 422


def test_lookups_404(client):
    assert client.get("/candidates/nobody").status_code == 404
    assert client.get("/votes/nobody").status_code == 404


def test_config_endpoints(client):
    cfg = client.get("/config").json()
    assert cfg["lockupasset"] == BOND

    cfg["maxvotes"] = 4
    r = client.post("/config", json=cfg, headers=_as("alice"))
    assert r.status_code == 403
    r = client.post("/config", json=cfg, headers=_as("auditor.bos"))
    assert r.status_code == 200
    assert client.get("/config").json()["maxvotes"] == 4


def test_balance(client):
    r = client.get("/token/balance/alice")
    assert r.json() == {"account": "alice", "balances": {"BOS": 10000_0000}}
