import logging
import os
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence, Union, runtime_checkable

import asyncpg
import psycopg
from psycopg_pool import ConnectionPool

from pgmq_client._types import QueryResult
from pgmq_client._utils import convert_placeholders
from pgmq_client.executors import ConnectionExecutor, PoolExecutor, has_async_execute
from pgmq_client.sqlalchemy import SQLAlchemyExecutor, is_sqlalchemy_handle

logger = logging.getLogger(__name__)

SYNC_HANDLES = (PoolExecutor, ConnectionExecutor, SQLAlchemyExecutor, ConnectionPool, psycopg.Connection)


@runtime_checkable
class AsyncQueryExecutor(Protocol):
    """Coroutine counterpart of ``QueryExecutor``."""

    async def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult: ...


@dataclass
class AsyncpgExecutor:
    """Executor over an ``asyncpg`` pool or a caller-owned connection."""

    handle: Union[asyncpg.Pool, asyncpg.Connection]

    @classmethod
    async def create(
        cls,
        host: Optional[str] = None,
        port: Optional[str] = None,
        database: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        pool_size: int = 10,
        **kwargs,
    ) -> "AsyncpgExecutor":
        """Open a pool, falling back to the ``PG_*`` environment variables."""
        logger.debug("Creating asyncpg connection pool")
        pool = await asyncpg.create_pool(
            user=username or os.getenv("PG_USERNAME", "postgres"),
            database=database or os.getenv("PG_DATABASE", "postgres"),
            password=password or os.getenv("PG_PASSWORD", "postgres"),
            host=host or os.getenv("PG_HOST", "localhost"),
            port=port or os.getenv("PG_PORT", "5432"),
            min_size=1,
            max_size=pool_size,
            **kwargs,
        )
        return cls(pool)

    async def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        statement, args = convert_placeholders(query, params, "numeric_dollar")
        logger.debug(f"Executing query: {statement} with params: {args}")
        if isinstance(self.handle, asyncpg.Pool):
            async with self.handle.acquire() as conn:
                return await self._run(conn, statement, args)
        return await self._run(self.handle, statement, args)

    @staticmethod
    async def _run(conn: asyncpg.Connection, statement: str, args) -> QueryResult:
        prepared = await conn.prepare(statement)
        rows = await prepared.fetch(*args)
        columns = [attribute.name for attribute in prepared.get_attributes()]
        return QueryResult(columns, [tuple(row) for row in rows])

    async def close(self) -> None:
        if isinstance(self.handle, asyncpg.Pool):
            await self.handle.close()


def as_async_executor(handle) -> AsyncQueryExecutor:
    """Coerce an asyncpg pool or connection into an ``AsyncQueryExecutor``."""
    if isinstance(handle, AsyncpgExecutor):
        return handle
    if isinstance(handle, (asyncpg.Pool, asyncpg.Connection)):
        return AsyncpgExecutor(handle)
    if isinstance(handle, SYNC_HANDLES) or is_sqlalchemy_handle(handle):
        raise TypeError(f"{type(handle).__name__} is synchronous, use pgmq_client.queue instead")
    if isinstance(handle, AsyncQueryExecutor) and has_async_execute(handle):
        return handle
    raise TypeError(f"cannot run queries through {type(handle).__name__}")
