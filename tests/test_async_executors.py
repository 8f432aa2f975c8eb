import unittest
from collections import namedtuple
from unittest.mock import MagicMock

import asyncpg

from pgmq_client import AsyncpgExecutor, PoolExecutor, QueryResult, as_async_executor
from tests._utils import AsyncRecordingExecutor, RecordingExecutor

Attribute = namedtuple("Attribute", ["name"])


class FakePreparedStatement:
    def __init__(self, columns, rows):
        self.columns = columns
        self.rows = rows
        self.args = None

    async def fetch(self, *args):
        self.args = args
        return list(self.rows)

    def get_attributes(self):
        return tuple(Attribute(name) for name in self.columns)


class FakeAsyncpgConnection:
    def __init__(self, columns=(), rows=()):
        self.statement = FakePreparedStatement(columns, rows)
        self.prepared = []

    async def prepare(self, query):
        self.prepared.append(query)
        return self.statement


class TestAsyncpgExecutor(unittest.IsolatedAsyncioTestCase):
    async def test_execute_on_connection(self):
        """Test placeholder rewriting and column names on a plain connection."""
        connection = FakeAsyncpgConnection(["msg_id"], [(1,), (2,)])
        result = await AsyncpgExecutor(connection).execute(
            "select * from pgmq.send_batch(%s::text, %s::jsonb[], %s::integer);", ("q", ["1", "2"], 0)
        )
        self.assertEqual(result, QueryResult(["msg_id"], [(1,), (2,)]))
        self.assertEqual(
            connection.prepared, ["select * from pgmq.send_batch($1::text, $2::jsonb[], $3::integer);"]
        )
        self.assertEqual(connection.statement.args, ("q", ["1", "2"], 0))

    async def test_execute_without_rows(self):
        """Test a statement that returns nothing."""
        connection = FakeAsyncpgConnection()
        result = await AsyncpgExecutor(connection).execute("create extension if not exists pgmq cascade;")
        self.assertEqual(result, QueryResult([], []))
        self.assertEqual(connection.statement.args, ())

    async def test_execute_on_pool(self):
        """Test that a pool lends a connection for the statement and is closed with the executor."""
        connection = FakeAsyncpgConnection(["drop_queue"], [(True,)])
        pool = MagicMock(spec=asyncpg.Pool)
        pool.acquire.return_value.__aenter__.return_value = connection
        executor = AsyncpgExecutor(pool)
        result = await executor.execute("select pgmq.drop_queue(%s::text);", ["q"])
        self.assertEqual(result.rows, [(True,)])
        pool.acquire.assert_called_once_with()
        await executor.close()
        pool.close.assert_awaited_once()

    async def test_close_leaves_connection_open(self):
        """Test that a caller-owned connection is not closed."""
        connection = MagicMock(spec=asyncpg.Connection)
        await AsyncpgExecutor(connection).close()
        connection.close.assert_not_called()


class TestAsAsyncExecutor(unittest.TestCase):
    def test_wraps_asyncpg_handles(self):
        self.assertIsInstance(as_async_executor(MagicMock(spec=asyncpg.Pool)), AsyncpgExecutor)
        self.assertIsInstance(as_async_executor(MagicMock(spec=asyncpg.Connection)), AsyncpgExecutor)

    def test_passes_through_async_executors(self):
        executor = AsyncRecordingExecutor()
        self.assertIs(as_async_executor(executor), executor)

    def test_rejects_sync_executors(self):
        for handle in (RecordingExecutor(), PoolExecutor(pool=MagicMock())):
            with self.subTest(handle=type(handle).__name__):
                with self.assertRaises(TypeError):
                    as_async_executor(handle)

    def test_rejects_unknown_handles(self):
        with self.assertRaises(TypeError) as e:
            as_async_executor(object())
        self.assertIn("cannot run queries through object", str(e.exception))


if __name__ == "__main__":
    unittest.main()
