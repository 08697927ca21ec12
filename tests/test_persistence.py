import pytest

from auditor_node.auditor_executor import AuditorExecutor
from auditor_node.auditor_runtime.atomic_store import StateStore

from conftest import BOND, FakeClock, enroll, make_settings


def _persistent_settings(tmp_path):
    s = make_settings()
    s.persistence.enabled = True
    s.node.data_dir = str(tmp_path / "data")
    return s


def test_state_survives_restart(tmp_path):
    settings = _persistent_settings(tmp_path)
    clock = FakeClock()
    ex = AuditorExecutor.from_settings(settings, clock=clock)
    enroll(ex, "alice")
    ex.update_bio("alice", "alice", "hello")
    assert ex.store.path.exists()
    assert not ex.store.interrupted()

    again = AuditorExecutor.from_settings(settings, clock=clock)
    assert again.candidate("alice")["locked_tokens"] == BOND
    assert again.candidate("alice")["bio"] == "hello"
    assert again.balances("alice")["BOS"] == 9000_0000
    # genesis is not re-applied on a loaded state
    assert again.ctx.ledger.supply("BOS") == ex.ctx.ledger.supply("BOS")
    assert [e["seq"] for e in again.events()] == [1, 2, 3]

    # the restored executor keeps working with the same wiring
    again.withdraw("alice", "alice")
    again.unstake("alice", "alice")
    assert again.stake_audit()["balanced"] is True


def test_backups_rotate_and_recover(tmp_path):
    store = StateStore(tmp_path, filename="s.json", keep_backups=2)
    for i in range(4):
        store.save({"n": i})
    assert store.load() == {"n": 3}
    assert store.backup_path(1).exists()
    assert store.backup_path(2).exists()

    store.path.write_text("{not json", encoding="utf-8")
    assert store.load() == {"n": 2}


def test_missing_store_loads_none(tmp_path):
    assert StateStore(tmp_path / "empty").load() is None


def test_failed_save_rolls_the_operation_back(tmp_path, monkeypatch):
    ex = AuditorExecutor.from_settings(_persistent_settings(tmp_path), clock=FakeClock())
    enroll(ex, "alice")
    events_before = ex.events()

    def broken_save(state):
        raise OSError("disk full")

    monkeypatch.setattr(ex.store, "save", broken_save)
    with pytest.raises(OSError):
        ex.withdraw("alice", "alice")
    assert ex.candidate("alice")["is_active"] is True
    assert ex.events() == events_before

    monkeypatch.undo()
    ex.withdraw("alice", "alice")
    assert ex.candidate("alice")["is_active"] is False
    assert ex.events()[-1]["seq"] == events_before[-1]["seq"] + 1
