# async_queue.py

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Sequence
import logging
import os

from pgmq_client import _results, _statement
from pgmq_client._statement import DEFAULT_MAX_POLL_SECONDS, DEFAULT_POLL_INTERVAL_MS
from pgmq_client._types import MESSAGE_OR_ID, MESSAGES_OR_IDS, PAYLOAD_TYPE
from pgmq_client._utils import message_id_of, normalize_message_ids, payload_list, validate_queue_name
from pgmq_client.async_executors import AsyncpgExecutor, AsyncQueryExecutor, as_async_executor
from pgmq_client.messages import Message, QueueMetrics, QueueRecord

logger = logging.getLogger(__name__)


async def create_queue(
    executor,
    queue: str,
    unlogged: bool = False,
    partition_interval: Optional[Any] = None,
    retention_interval: Optional[Any] = None,
) -> None:
    """Create a new queue."""
    logger.debug(
        f"create_queue called with queue='{queue}', unlogged={unlogged}, "
        f"partition_interval={partition_interval}, retention_interval={retention_interval}"
    )
    statement = _statement.create_queue(queue, unlogged, partition_interval, retention_interval)
    _results.executed("create_queue", await as_async_executor(executor).execute(*statement))


async def drop_queue(executor, queue: str) -> bool:
    """Drop a queue."""
    logger.debug(f"drop_queue called with queue='{queue}'")
    result = await as_async_executor(executor).execute(*_statement.drop_queue(queue))
    return _results.single_value("drop_queue", result)


async def purge_queue(executor, queue: str) -> int:
    """Purge a queue."""
    logger.debug(f"purge_queue called with queue='{queue}'")
    result = await as_async_executor(executor).execute(*_statement.purge_queue(queue))
    return _results.single_value("purge_queue", result)


async def send_message(executor, queue: str, payload: PAYLOAD_TYPE, delay: int = 0) -> int:
    """Send a message to a queue."""
    logger.debug(f"send_message called with queue='{queue}', delay={delay}")
    result = await as_async_executor(executor).execute(*_statement.send(queue, payload, delay))
    msg_id = _results.sent_id(queue, result)
    logger.debug(f"Message sent to '{queue}' with msg_id={msg_id}")
    return msg_id


async def send_messages(executor, queue: str, payloads: Sequence[PAYLOAD_TYPE], delay: int = 0) -> List[int]:
    """Send a batch of messages to a queue."""
    payloads = payload_list(payloads)
    logger.debug(f"send_messages called with queue='{queue}', count={len(payloads)}, delay={delay}")
    result = await as_async_executor(executor).execute(*_statement.send_batch(queue, payloads, delay))
    return _results.sent_ids(queue, result, len(payloads))


async def read_message(executor, queue: str, vt: int) -> Optional[Message]:
    """Read a message from a queue."""
    logger.debug(f"read_message called with queue='{queue}', vt={vt}")
    result = await as_async_executor(executor).execute(*_statement.read(queue, vt, 1))
    return _results.optional_message("read_message", result)


async def read_messages(executor, queue: str, vt: int, count: int) -> List[Message]:
    """Read a batch of messages from a queue."""
    logger.debug(f"read_messages called with queue='{queue}', vt={vt}, count={count}")
    result = await as_async_executor(executor).execute(*_statement.read(queue, vt, count))
    return _results.messages("read_messages", result, count)


async def read_messages_with_poll(
    executor,
    queue: str,
    vt: int,
    count: int,
    max_poll_seconds: int = DEFAULT_MAX_POLL_SECONDS,
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
) -> List[Message]:
    """Read messages from a queue, polling server-side for up to ``max_poll_seconds``."""
    logger.debug(
        f"read_messages_with_poll called with queue='{queue}', vt={vt}, count={count}, "
        f"max_poll_seconds={max_poll_seconds}, poll_interval_ms={poll_interval_ms}"
    )
    statement = _statement.read_with_poll(queue, vt, count, max_poll_seconds, poll_interval_ms)
    result = await as_async_executor(executor).execute(*statement)
    return _results.messages("read_messages_with_poll", result, count)


async def pop_message(executor, queue: str) -> Optional[Message]:
    """Pop a message from a queue."""
    logger.debug(f"pop_message called with queue='{queue}'")
    result = await as_async_executor(executor).execute(*_statement.pop(queue))
    return _results.optional_message("pop_message", result)


async def set_message_vt(executor, queue: str, message_or_id: MESSAGE_OR_ID, vt: int) -> Message:
    """Set the visibility timeout for a specific message."""
    msg_id = message_id_of(message_or_id)
    logger.debug(f"set_message_vt called with queue='{queue}', msg_id={msg_id}, vt={vt}")
    result = await as_async_executor(executor).execute(*_statement.set_vt(queue, msg_id, vt))
    return _results.message("set_message_vt", result)


async def archive_messages(executor, queue: str, messages_or_ids: MESSAGES_OR_IDS) -> None:
    """Archive messages from a queue."""
    msg_ids = normalize_message_ids(messages_or_ids)
    logger.debug(f"archive_messages called with queue='{queue}', msg_ids={msg_ids}")
    executor = as_async_executor(executor)
    if len(msg_ids) == 1:
        result = await executor.execute(*_statement.archive(queue, msg_ids[0]))
        _results.acknowledged("archive_messages", result)
    else:
        result = await executor.execute(*_statement.archive_batch(queue, msg_ids))
        _results.acknowledged_ids("archive_messages", result, msg_ids)


async def delete_messages(executor, queue: str, messages_or_ids: MESSAGES_OR_IDS) -> None:
    """Delete messages from a queue."""
    msg_ids = normalize_message_ids(messages_or_ids)
    logger.debug(f"delete_messages called with queue='{queue}', msg_ids={msg_ids}")
    executor = as_async_executor(executor)
    if len(msg_ids) == 1:
        result = await executor.execute(*_statement.delete(queue, msg_ids[0]))
        _results.acknowledged("delete_messages", result)
    else:
        result = await executor.execute(*_statement.delete_batch(queue, msg_ids))
        _results.acknowledged_ids("delete_messages", result, msg_ids)


async def list_queues(executor) -> List[QueueRecord]:
    """List all queues."""
    logger.debug("list_queues called")
    return _results.queue_records(await as_async_executor(executor).execute(*_statement.list_queues()))


async def get_metrics(executor, queue: str) -> QueueMetrics:
    """Get metrics for a specific queue."""
    logger.debug(f"get_metrics called with queue='{queue}'")
    result = await as_async_executor(executor).execute(*_statement.metrics(queue))
    return _results.queue_metrics("get_metrics", result)


async def get_metrics_all(executor) -> List[QueueMetrics]:
    """Get metrics for all queues."""
    logger.debug("get_metrics_all called")
    return _results.queue_metrics_list(await as_async_executor(executor).execute(*_statement.metrics_all()))


async def queue_size(executor, queue: str) -> int:
    return (await get_metrics(executor, queue)).queue_length


async def archive_size(executor, queue: str) -> int:
    logger.debug(f"archive_size called with queue='{queue}'")
    result = await as_async_executor(executor).execute(*_statement.archive_size(queue))
    return _results.single_value("archive_size", result)


@dataclass
class AsyncPGMQueue:
    """Asynchronous queue client bound to one executor.

    Call ``await queue.init()`` before use; it opens an asyncpg pool when no
    ``executor`` was given.
    """

    host: str = field(default_factory=lambda: os.getenv("PG_HOST", "localhost"))
    port: str = field(default_factory=lambda: os.getenv("PG_PORT", "5432"))
    database: str = field(default_factory=lambda: os.getenv("PG_DATABASE", "postgres"))
    username: str = field(default_factory=lambda: os.getenv("PG_USERNAME", "postgres"))
    password: str = field(default_factory=lambda: os.getenv("PG_PASSWORD", "postgres"))
    vt: int = 30
    pool_size: int = 10
    executor: Optional[AsyncQueryExecutor] = None
    create_extension: bool = True
    verbose: bool = False
    log_filename: Optional[str] = None
    logger: logging.Logger = field(init=False, repr=False)
    _file_handler: Optional[logging.FileHandler] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.host = self.host or "localhost"
        self.port = self.port or "5432"
        self.database = self.database or "postgres"
        self.username = self.username or "postgres"
        self.password = self.password or "postgres"

        self._initialize_logging()
        if self.executor is not None:
            self.executor = as_async_executor(self.executor)
        self.logger.debug("AsyncPGMQueue initialized")

    def _initialize_logging(self) -> None:
        self.logger = logging.getLogger("pgmq_client")

        if self.verbose:
            log_filename = self.log_filename or datetime.now().strftime("pgmq_async_debug_%Y%m%d_%H%M%S.log")
            file_handler = logging.FileHandler(filename=os.path.join(os.getcwd(), log_filename))
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)
            self.logger.setLevel(logging.DEBUG)
            self._file_handler = file_handler

    def _close_logging(self) -> None:
        if self._file_handler is None:
            return
        self.logger.removeHandler(self._file_handler)
        self._file_handler.close()
        self._file_handler = None
        if not self.logger.handlers:
            self.logger.setLevel(logging.NOTSET)

    async def init(self) -> "AsyncPGMQueue":
        if self.executor is None:
            self.executor = await AsyncpgExecutor.create(
                host=self.host,
                port=self.port,
                database=self.database,
                username=self.username,
                password=self.password,
                pool_size=self.pool_size,
            )
        if self.create_extension:
            self.logger.debug("Initializing pgmq extension")
            await self.executor.execute(*_statement.create_extension())
        return self

    async def close(self) -> None:
        try:
            if self.executor is not None:
                await self.executor.close()
        finally:
            self._close_logging()

    async def __aenter__(self) -> "AsyncPGMQueue":
        return await self.init()

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def validate_queue_name(self, queue: str) -> str:
        return validate_queue_name(queue)

    async def create_queue(self, queue: str, unlogged: bool = False) -> None:
        await create_queue(self.executor, queue, unlogged=unlogged)

    async def create_partitioned_queue(
        self,
        queue: str,
        partition_interval: Any = 10000,
        retention_interval: Any = 100000,
    ) -> None:
        await create_queue(
            self.executor,
            queue,
            partition_interval=partition_interval,
            retention_interval=retention_interval,
        )

    async def drop_queue(self, queue: str) -> bool:
        return await drop_queue(self.executor, queue)

    async def purge_queue(self, queue: str) -> int:
        return await purge_queue(self.executor, queue)

    async def send_message(self, queue: str, payload: PAYLOAD_TYPE, delay: int = 0) -> int:
        return await send_message(self.executor, queue, payload, delay)

    async def send_messages(self, queue: str, payloads: Sequence[PAYLOAD_TYPE], delay: int = 0) -> List[int]:
        return await send_messages(self.executor, queue, payloads, delay)

    async def read_message(self, queue: str, vt: Optional[int] = None) -> Optional[Message]:
        return await read_message(self.executor, queue, self.vt if vt is None else vt)

    async def read_messages(self, queue: str, vt: Optional[int] = None, count: int = 1) -> List[Message]:
        return await read_messages(self.executor, queue, self.vt if vt is None else vt, count)

    async def read_messages_with_poll(
        self,
        queue: str,
        vt: Optional[int] = None,
        count: int = 1,
        max_poll_seconds: int = DEFAULT_MAX_POLL_SECONDS,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ) -> List[Message]:
        return await read_messages_with_poll(
            self.executor,
            queue,
            self.vt if vt is None else vt,
            count,
            max_poll_seconds,
            poll_interval_ms,
        )

    async def pop_message(self, queue: str) -> Optional[Message]:
        return await pop_message(self.executor, queue)

    async def set_message_vt(self, queue: str, message_or_id: MESSAGE_OR_ID, vt: int) -> Message:
        return await set_message_vt(self.executor, queue, message_or_id, vt)

    async def archive_messages(self, queue: str, messages_or_ids: MESSAGES_OR_IDS) -> None:
        await archive_messages(self.executor, queue, messages_or_ids)

    async def delete_messages(self, queue: str, messages_or_ids: MESSAGES_OR_IDS) -> None:
        await delete_messages(self.executor, queue, messages_or_ids)

    async def list_queues(self) -> List[QueueRecord]:
        return await list_queues(self.executor)

    async def get_metrics(self, queue: str) -> QueueMetrics:
        return await get_metrics(self.executor, queue)

    async def get_metrics_all(self) -> List[QueueMetrics]:
        return await get_metrics_all(self.executor)

    async def queue_size(self, queue: str) -> int:
        return await queue_size(self.executor, queue)

    async def archive_size(self, queue: str) -> int:
        return await archive_size(self.executor, queue)
