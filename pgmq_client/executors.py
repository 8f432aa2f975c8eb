import inspect
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

import psycopg
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from pgmq_client._types import QueryResult
from pgmq_client.sqlalchemy.executor import SQLAlchemyExecutor, is_sqlalchemy_handle

logger = logging.getLogger(__name__)


@runtime_checkable
class QueryExecutor(Protocol):
    """Runs one parameterized query and returns its columns and rows."""

    def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult: ...


def _fetch(conn, query: str, params) -> QueryResult:
    # rows are decoded by position, whatever row_factory the connection carries
    with conn.cursor(row_factory=tuple_row) as cursor:
        cursor.execute(query, params)
        if cursor.description is None:
            return QueryResult([], [])
        columns = [column.name for column in cursor.description]
        return QueryResult(columns, list(cursor.fetchall()))


def has_async_execute(handle) -> bool:
    return inspect.iscoroutinefunction(getattr(handle, "execute", None))


@dataclass
class PoolExecutor:
    """Executor backed by a ``psycopg_pool.ConnectionPool``.

    Connection settings default to the ``PG_*`` environment variables. Every
    query borrows one connection from the pool and commits when it returns.
    """

    host: str = field(default_factory=lambda: os.getenv("PG_HOST", "localhost"))
    port: str = field(default_factory=lambda: os.getenv("PG_PORT", "5432"))
    database: str = field(default_factory=lambda: os.getenv("PG_DATABASE", "postgres"))
    username: str = field(default_factory=lambda: os.getenv("PG_USERNAME", "postgres"))
    password: str = field(default_factory=lambda: os.getenv("PG_PASSWORD", "postgres"))
    pool_size: int = 10
    kwargs: dict = field(default_factory=dict)
    pool: Optional[ConnectionPool] = None

    def __post_init__(self) -> None:
        if self.pool is None:
            conninfo = f"""
            host={self.host}
            port={self.port}
            dbname={self.database}
            user={self.username}
            password={self.password}
            """
            kwargs = {"min_size": 1, "max_size": self.pool_size, **self.kwargs}
            self.pool = ConnectionPool(conninfo, open=True, **kwargs)

    def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        logger.debug(f"Executing query: {query} with params: {params}")
        with self.pool.connection() as conn:
            return _fetch(conn, query, params)

    def close(self) -> None:
        self.pool.close()


@dataclass
class ConnectionExecutor:
    """Executor over a caller-owned ``psycopg.Connection``.

    Nothing is committed here, so queue calls become part of whatever
    transaction the caller has open on the connection.
    """

    connection: psycopg.Connection

    def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        logger.debug(f"Executing query: {query} with params: {params} using conn: {self.connection}")
        return _fetch(self.connection, query, params)

    def close(self) -> None:
        pass


def as_executor(handle) -> QueryExecutor:
    """Coerce a database handle into a ``QueryExecutor``."""
    if isinstance(handle, (PoolExecutor, ConnectionExecutor)):
        return handle
    if isinstance(handle, ConnectionPool):
        return PoolExecutor(pool=handle)
    if isinstance(handle, psycopg.Connection):
        return ConnectionExecutor(handle)
    if isinstance(handle, SQLAlchemyExecutor):
        return handle
    if is_sqlalchemy_handle(handle):
        return SQLAlchemyExecutor(handle)
    if has_async_execute(handle):
        raise TypeError(f"{type(handle).__name__} is asynchronous, use pgmq_client.async_queue instead")
    if isinstance(handle, QueryExecutor):
        return handle
    raise TypeError(f"cannot run queries through {type(handle).__name__}")
