from pgmq_client.messages import Message, QueueMetrics, QueueRecord  # type: ignore
from pgmq_client.errors import InvalidQueueNameError, PgmqError, SendError, ShapeViolationError
from pgmq_client.executors import ConnectionExecutor, PoolExecutor, QueryExecutor, as_executor
from pgmq_client.async_executors import AsyncpgExecutor, AsyncQueryExecutor, as_async_executor
from pgmq_client.sqlalchemy import SQLAlchemyExecutor
from pgmq_client._types import QueryResult
from pgmq_client._utils import normalize_message_ids, validate_queue_name
from pgmq_client.queue import PGMQueue
from pgmq_client.async_queue import AsyncPGMQueue

__all__ = [
    "Message",
    "QueueMetrics",
    "QueueRecord",
    "QueryResult",
    "PgmqError",
    "ShapeViolationError",
    "SendError",
    "InvalidQueueNameError",
    "QueryExecutor",
    "PoolExecutor",
    "ConnectionExecutor",
    "SQLAlchemyExecutor",
    "AsyncQueryExecutor",
    "AsyncpgExecutor",
    "as_executor",
    "as_async_executor",
    "normalize_message_ids",
    "validate_queue_name",
    "PGMQueue",
    "AsyncPGMQueue",
]
