"""Shared fixtures: an in-memory adapter standing in for a real database driver."""

import pytest

from adapters.base import ColumnDescriptor, DatabaseAdapter, QueryResult
from api.security import limiter


class FakeSession:
    def __init__(self, name):
        self.name = name
        self.closed = False


class FakeAdapter(DatabaseAdapter):
    engine = "mysql"

    def __init__(self, engine="mysql", rows=None, schema=None, connect_error=None, execute_error=None):
        self.engine = engine
        self.rows = rows if rows is not None else [{"id": 1, "name": "alice"}, {"id": 2, "name": "bob"}]
        self.schema = schema if schema is not None else {
            "A": [
                ColumnDescriptor(name="col1", data_type="int", nullable=False),
                ColumnDescriptor(name="col2", data_type="varchar", nullable=True),
            ],
            "B": [ColumnDescriptor(name="id", data_type="int", nullable=False, key_role="PRI")],
        }
        self.connect_error = connect_error
        self.execute_error = execute_error
        self.sessions = []
        self.executed = []

    def connect(self, config):
        if self.connect_error is not None:
            raise self.connect_error
        session = FakeSession(config.database)
        self.sessions.append(session)
        return session

    def execute(self, session, sql):
        if session.closed:
            raise RuntimeError("session is closed")
        if self.execute_error is not None:
            raise self.execute_error
        self.executed.append(sql)
        return QueryResult(rows=list(self.rows))

    def introspect_schema(self, session):
        if self.execute_error is not None:
            raise self.execute_error
        return dict(self.schema)

    def close(self, session):
        session.closed = True


@pytest.fixture
def fake_adapter():
    return FakeAdapter()


@pytest.fixture
def use_fake_adapter(monkeypatch, fake_adapter):
    monkeypatch.setattr("connections.service.get_adapter", lambda db_type: fake_adapter)
    return fake_adapter


@pytest.fixture(autouse=True)
def _disable_rate_limits():
    limiter.enabled = False
    yield
    limiter.enabled = False
    limiter.reset()
