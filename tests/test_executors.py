from collections import namedtuple
from contextlib import contextmanager

import pytest
from psycopg.rows import tuple_row

from pgmq_client import ConnectionExecutor, PoolExecutor, QueryResult, as_executor
from pgmq_client import queue as pgmq
from tests._utils import AsyncRecordingExecutor, RecordingExecutor

Column = namedtuple("Column", ["name"])


class FakeCursor:
    """Cursor that honours ``row_factory`` the way psycopg does for tuple vs dict rows."""

    def __init__(self, connection, row_factory):
        self.connection = connection
        self.row_factory = row_factory
        self.description = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        pass

    def execute(self, query, params=None):
        self.connection.calls.append((query, params))
        if self.connection.columns is not None:
            self.description = [Column(name) for name in self.connection.columns]

    def fetchall(self):
        if self.row_factory is tuple_row:
            return list(self.connection.rows)
        return [dict(zip(self.connection.columns, row)) for row in self.connection.rows]


class FakeConnection:
    """Connection configured with a dict-style ``row_factory`` by default."""

    def __init__(self, columns=None, rows=()):
        self.columns = columns
        self.rows = list(rows)
        self.calls = []
        self.row_factories = []

    def cursor(self, row_factory=None):
        self.row_factories.append(row_factory)
        return FakeCursor(self, row_factory)


class FakePool:
    def __init__(self, connection):
        self._connection = connection
        self.closed = False

    @contextmanager
    def connection(self):
        yield self._connection

    def close(self):
        self.closed = True


def test_connection_executor_returns_tuple_rows():
    connection = FakeConnection(["send"], [(42,)])
    result = ConnectionExecutor(connection).execute("select * from pgmq.send(%s::text, %s::jsonb);", ["q", "1"])
    assert result == QueryResult(["send"], [(42,)])
    assert connection.row_factories == [tuple_row]
    assert connection.calls == [("select * from pgmq.send(%s::text, %s::jsonb);", ["q", "1"])]


def test_connection_executor_without_rows():
    connection = FakeConnection()
    result = ConnectionExecutor(connection).execute("create extension if not exists pgmq cascade;")
    assert result == QueryResult([], [])


def test_send_through_connection_with_dict_rows():
    connection = FakeConnection(["send"], [(42,)])
    assert pgmq.send_message(ConnectionExecutor(connection), "my_queue", "1") == 42
    assert len(connection.calls) == 1


def test_pool_executor_borrows_connection():
    connection = FakeConnection(["queue_name", "queue_length"], [("my_queue", 3)])
    pool = FakePool(connection)
    executor = PoolExecutor(pool=pool)
    result = executor.execute("select %s, %s;", ["my_queue", 3])
    assert result == QueryResult(["queue_name", "queue_length"], [("my_queue", 3)])
    assert connection.row_factories == [tuple_row]
    executor.close()
    assert pool.closed is True


def test_as_executor_passes_through_sync_executors():
    executor = RecordingExecutor()
    assert as_executor(executor) is executor


def test_as_executor_rejects_async_executors():
    with pytest.raises(TypeError) as e:
        as_executor(AsyncRecordingExecutor())
    assert "asynchronous" in str(e.value)


def test_as_executor_rejects_unknown_handles():
    with pytest.raises(TypeError) as e:
        as_executor("postgresql://localhost")
    assert "cannot run queries through str" in str(e.value)
