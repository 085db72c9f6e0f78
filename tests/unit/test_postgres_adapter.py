from contextlib import contextmanager

import psycopg
import pytest

from adapters.errors import ConnectionFailureCause
from adapters.postgres import PostgresAdapter
from connections.config import ConnectionConfig


class FakeCursor:
    def __init__(self, results):
        self.results = list(results)
        self.executed = []
        self.description = None
        self._rows = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, sql, params=None):
        self.executed.append((sql, params))
        columns, rows = self.results.pop(0) if self.results else (None, [])
        self.description = [(name,) for name in columns] if columns is not None else None
        self._rows = rows

    def fetchall(self):
        return self._rows


class FakeConn:
    def __init__(self, results):
        self.cursor_obj = FakeCursor(results)

    def cursor(self):
        return self.cursor_obj


class FakePool:
    def __init__(self, results=()):
        self.conn = FakeConn(results)
        self.borrowed = 0
        self.closed = False

    @contextmanager
    def connection(self, timeout=None):
        self.borrowed += 1
        yield self.conn

    def close(self, timeout=5.0):
        self.closed = True


def _config():
    return ConnectionConfig(type="postgresql", host="pg.local", user="app", password="pw", database="shop")


def test_connect_probes_then_opens_single_connection_pool(monkeypatch):
    probe_calls = []
    pool_kwargs = {}

    class Probe:
        closed = False

        def close(self):
            Probe.closed = True

    def fake_connect(**kwargs):
        probe_calls.append(kwargs)
        return Probe()

    class RecordingPool:
        def __init__(self, **kwargs):
            pool_kwargs.update(kwargs)
            self.opened = None

        def open(self, wait=False, timeout=30.0):
            self.opened = (wait, timeout)

        def close(self, timeout=5.0):
            pass

    monkeypatch.setattr("adapters.postgres.psycopg.connect", fake_connect)
    monkeypatch.setattr("adapters.postgres.ConnectionPool", RecordingPool)

    pool = PostgresAdapter().connect(_config())

    assert probe_calls[0]["dbname"] == "shop"
    assert probe_calls[0]["port"] == 5432
    assert probe_calls[0]["connect_timeout"] == 10
    assert Probe.closed is True
    assert pool_kwargs["min_size"] == 1
    assert pool_kwargs["max_size"] == 1
    assert pool_kwargs["timeout"] == 10
    assert pool_kwargs["max_idle"] == 10
    assert pool_kwargs["kwargs"]["autocommit"] is True
    assert pool.opened == (True, 10)


def test_connect_surfaces_probe_error_without_building_pool(monkeypatch):
    def fake_connect(**kwargs):
        raise psycopg.OperationalError('connection failed: FATAL:  database "nope" does not exist')

    def no_pool(**kwargs):
        raise AssertionError("pool must not be created")

    monkeypatch.setattr("adapters.postgres.psycopg.connect", fake_connect)
    monkeypatch.setattr("adapters.postgres.ConnectionPool", no_pool)

    with pytest.raises(psycopg.OperationalError):
        PostgresAdapter().connect(_config())


def test_execute_projects_rows_by_column_name():
    pool = FakePool(results=[(["id", "name"], [(1, "alice"), (2, "bob")])])
    result = PostgresAdapter().execute(pool, "SELECT id, name FROM users")

    assert result.rows == [{"id": 1, "name": "alice"}, {"id": 2, "name": "bob"}]
    assert result.row_count == 2
    assert pool.borrowed == 1


def test_execute_without_result_set_returns_empty_rows():
    pool = FakePool(results=[(None, [])])
    result = PostgresAdapter().execute(pool, "SET search_path TO public")
    assert result.to_dict() == {"rows": [], "row_count": 0}


def test_introspect_schema_reads_public_base_tables():
    pool = FakePool(
        results=[
            (["table_name"], [("a",), ("b",)]),
            (
                ["column_name", "data_type", "is_nullable", "constraint_type"],
                [("col1", "integer", "NO", None), ("col2", "character varying", "YES", None)],
            ),
            (["column_name", "data_type", "is_nullable", "constraint_type"], [("id", "integer", "NO", "PRIMARY KEY")]),
        ]
    )
    schema = PostgresAdapter().introspect_schema(pool)

    assert [(c.name, c.data_type, c.nullable, c.key_role) for c in schema["a"]] == [
        ("col1", "integer", False, None),
        ("col2", "character varying", True, None),
    ]
    assert schema["b"][0].key_role == "PRI"

    executed = pool.conn.cursor_obj.executed
    assert "table_type = 'BASE TABLE'" in executed[0][0]
    assert executed[0][1] == ("public",)
    assert executed[1][1] == ("public", "a")
    assert executed[2][1] == ("public", "b")


def test_close_closes_pool():
    pool = FakePool()
    PostgresAdapter().close(pool)
    assert pool.closed is True


@pytest.mark.parametrize(
    "message, cause",
    [
        (
            'connection failed: connection to server at "127.0.0.1", port 5432 failed: Connection refused',
            ConnectionFailureCause.REFUSED,
        ),
        ("failed to resolve host 'nohost': [Errno -2] Name or service not known", ConnectionFailureCause.HOST_NOT_FOUND),
        ('could not translate host name "nohost" to address', ConnectionFailureCause.HOST_NOT_FOUND),
        ('FATAL:  password authentication failed for user "app"', ConnectionFailureCause.ACCESS_DENIED),
        ('FATAL:  database "nope" does not exist', ConnectionFailureCause.UNKNOWN_DATABASE),
        ("SSL SYSCALL error: EOF detected", ConnectionFailureCause.GENERIC),
    ],
)
def test_classify_connect_error(message, cause):
    assert PostgresAdapter().classify_connect_error(psycopg.OperationalError(message)) is cause
