import logging
import threading

import pytest

from adapters.errors import ConnectionNotFoundError
from connections.registry import ConnectionRegistry, mint_handle


class _Session:
    def __init__(self):
        self.closed = 0


def test_mint_handle_carries_type_tag():
    handle = mint_handle("postgresql")
    assert handle.startswith("postgresql_")
    assert len(handle.split("_", 1)[1]) == 32


def test_register_and_lookup(fake_adapter):
    registry = ConnectionRegistry()
    session = _Session()
    handle = registry.register(fake_adapter, session)

    managed = registry.lookup(handle)
    assert managed.handle == handle
    assert managed.db_type == "mysql"
    assert managed.session is session
    assert handle in registry
    assert len(registry) == 1


def test_lookup_unknown_handle_raises_not_found():
    registry = ConnectionRegistry()
    with pytest.raises(ConnectionNotFoundError) as excinfo:
        registry.lookup("mysql_missing")
    assert excinfo.value.status_code == 400
    assert excinfo.value.handle == "mysql_missing"


def test_dispose_closes_session_and_is_idempotent(monkeypatch, fake_adapter):
    registry = ConnectionRegistry()
    session = _Session()
    handle = registry.register(fake_adapter, session)

    calls = []
    monkeypatch.setattr(fake_adapter, "close", lambda s: calls.append(s))

    assert registry.dispose(handle) is True
    assert registry.dispose(handle) is False
    assert calls == [session]
    with pytest.raises(ConnectionNotFoundError):
        registry.lookup(handle)


def test_dispose_logs_connection_age(caplog, fake_adapter):
    registry = ConnectionRegistry()
    handle = registry.register(fake_adapter, _Session())
    assert registry.lookup(handle).created_at.tzinfo is not None

    with caplog.at_level(logging.INFO, logger="connections.registry"):
        registry.dispose(handle)

    assert f"Closed mysql connection {handle} after" in caplog.text


def test_close_all_sweeps_every_entry(monkeypatch, fake_adapter):
    registry = ConnectionRegistry()
    closed = []
    monkeypatch.setattr(fake_adapter, "close", lambda s: closed.append(s))
    sessions = [_Session() for _ in range(3)]
    for session in sessions:
        registry.register(fake_adapter, session)

    assert registry.close_all() == 3
    assert len(registry) == 0
    assert sorted(map(id, closed)) == sorted(map(id, sessions))


def test_close_all_continues_past_failing_close(monkeypatch, fake_adapter):
    registry = ConnectionRegistry()
    first = registry.register(fake_adapter, _Session())
    registry.register(fake_adapter, _Session())

    failures = []

    def flaky_close(session):
        if failures:
            return
        failures.append(session)
        raise RuntimeError("boom")

    monkeypatch.setattr(fake_adapter, "close", flaky_close)

    assert registry.close_all() == 1
    assert len(registry) == 0
    assert first not in registry


def test_concurrent_registration_yields_distinct_handles(fake_adapter):
    registry = ConnectionRegistry()
    handles = []
    lock = threading.Lock()

    def worker():
        for _ in range(50):
            handle = registry.register(fake_adapter, _Session())
            with lock:
                handles.append(handle)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(handles) == 400
    assert len(set(handles)) == 400
    assert len(registry) == 400
