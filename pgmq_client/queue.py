from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Sequence
import logging
import os

from pgmq_client import _results, _statement
from pgmq_client._statement import DEFAULT_MAX_POLL_SECONDS, DEFAULT_POLL_INTERVAL_MS
from pgmq_client._types import MESSAGE_OR_ID, MESSAGES_OR_IDS, PAYLOAD_TYPE
from pgmq_client._utils import message_id_of, normalize_message_ids, payload_list, validate_queue_name
from pgmq_client.executors import PoolExecutor, QueryExecutor, as_executor
from pgmq_client.messages import Message, QueueMetrics, QueueRecord

logger = logging.getLogger(__name__)


def create_queue(
    executor,
    queue: str,
    unlogged: bool = False,
    partition_interval: Optional[Any] = None,
    retention_interval: Optional[Any] = None,
) -> None:
    """Create a new queue.

    ``unlogged`` and partitioning are mutually exclusive. A partitioned queue
    needs both ``partition_interval`` and ``retention_interval``; the pg_partman
    extension must be installed in the database.
    """
    logger.debug(
        f"create_queue called with queue='{queue}', unlogged={unlogged}, "
        f"partition_interval={partition_interval}, retention_interval={retention_interval}"
    )
    statement = _statement.create_queue(queue, unlogged, partition_interval, retention_interval)
    _results.executed("create_queue", as_executor(executor).execute(*statement))


def drop_queue(executor, queue: str) -> bool:
    """Drop a queue together with its archive."""
    logger.debug(f"drop_queue called with queue='{queue}'")
    result = as_executor(executor).execute(*_statement.drop_queue(queue))
    return _results.single_value("drop_queue", result)


def purge_queue(executor, queue: str) -> int:
    """Delete every message in a queue, returning how many were removed."""
    logger.debug(f"purge_queue called with queue='{queue}'")
    result = as_executor(executor).execute(*_statement.purge_queue(queue))
    return _results.single_value("purge_queue", result)


def send_message(executor, queue: str, payload: PAYLOAD_TYPE, delay: int = 0) -> int:
    """Send one message and return its id.

    ``payload`` is JSON text (``str`` or UTF-8 ``bytes``); other values are
    encoded with orjson. Raises ``SendError`` when no id comes back.
    """
    logger.debug(f"send_message called with queue='{queue}', delay={delay}")
    result = as_executor(executor).execute(*_statement.send(queue, payload, delay))
    msg_id = _results.sent_id(queue, result)
    logger.debug(f"Message sent to '{queue}' with msg_id={msg_id}")
    return msg_id


def send_messages(executor, queue: str, payloads: Sequence[PAYLOAD_TYPE], delay: int = 0) -> List[int]:
    """Send a batch of messages; ids come back in input order."""
    payloads = payload_list(payloads)
    logger.debug(f"send_messages called with queue='{queue}', count={len(payloads)}, delay={delay}")
    result = as_executor(executor).execute(*_statement.send_batch(queue, payloads, delay))
    return _results.sent_ids(queue, result, len(payloads))


def read_message(executor, queue: str, vt: int) -> Optional[Message]:
    """Read one message, hiding it for ``vt`` seconds. ``None`` if the queue is empty."""
    logger.debug(f"read_message called with queue='{queue}', vt={vt}")
    result = as_executor(executor).execute(*_statement.read(queue, vt, 1))
    return _results.optional_message("read_message", result)


def read_messages(executor, queue: str, vt: int, count: int) -> List[Message]:
    """Read up to ``count`` messages, hiding each for ``vt`` seconds."""
    logger.debug(f"read_messages called with queue='{queue}', vt={vt}, count={count}")
    result = as_executor(executor).execute(*_statement.read(queue, vt, count))
    return _results.messages("read_messages", result, count)


def read_messages_with_poll(
    executor,
    queue: str,
    vt: int,
    count: int,
    max_poll_seconds: int = DEFAULT_MAX_POLL_SECONDS,
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
) -> List[Message]:
    """Read up to ``count`` messages, waiting for some to arrive if the queue is empty.

    The waiting happens inside the database: ``pgmq.read_with_poll`` checks the
    queue every ``poll_interval_ms`` until a message is visible or
    ``max_poll_seconds`` elapse. This call therefore holds its connection for up
    to ``max_poll_seconds``; size the pool accordingly.
    """
    logger.debug(
        f"read_messages_with_poll called with queue='{queue}', vt={vt}, count={count}, "
        f"max_poll_seconds={max_poll_seconds}, poll_interval_ms={poll_interval_ms}"
    )
    statement = _statement.read_with_poll(queue, vt, count, max_poll_seconds, poll_interval_ms)
    result = as_executor(executor).execute(*statement)
    return _results.messages("read_messages_with_poll", result, count)


def pop_message(executor, queue: str) -> Optional[Message]:
    """Read and delete one message atomically."""
    logger.debug(f"pop_message called with queue='{queue}'")
    result = as_executor(executor).execute(*_statement.pop(queue))
    return _results.optional_message("pop_message", result)


def set_message_vt(executor, queue: str, message_or_id: MESSAGE_OR_ID, vt: int) -> Message:
    """Hide a message for ``vt`` seconds from now; ``vt=0`` makes it visible immediately."""
    msg_id = message_id_of(message_or_id)
    logger.debug(f"set_message_vt called with queue='{queue}', msg_id={msg_id}, vt={vt}")
    result = as_executor(executor).execute(*_statement.set_vt(queue, msg_id, vt))
    return _results.message("set_message_vt", result)


def archive_messages(executor, queue: str, messages_or_ids: MESSAGES_OR_IDS) -> None:
    """Move messages to the queue's archive.

    Accepts a list of ``Message`` records or a list of ids, never a mix.
    """
    msg_ids = normalize_message_ids(messages_or_ids)
    logger.debug(f"archive_messages called with queue='{queue}', msg_ids={msg_ids}")
    executor = as_executor(executor)
    if len(msg_ids) == 1:
        result = executor.execute(*_statement.archive(queue, msg_ids[0]))
        _results.acknowledged("archive_messages", result)
    else:
        result = executor.execute(*_statement.archive_batch(queue, msg_ids))
        _results.acknowledged_ids("archive_messages", result, msg_ids)


def delete_messages(executor, queue: str, messages_or_ids: MESSAGES_OR_IDS) -> None:
    """Permanently delete messages. Same input rules as ``archive_messages``."""
    msg_ids = normalize_message_ids(messages_or_ids)
    logger.debug(f"delete_messages called with queue='{queue}', msg_ids={msg_ids}")
    executor = as_executor(executor)
    if len(msg_ids) == 1:
        result = executor.execute(*_statement.delete(queue, msg_ids[0]))
        _results.acknowledged("delete_messages", result)
    else:
        result = executor.execute(*_statement.delete_batch(queue, msg_ids))
        _results.acknowledged_ids("delete_messages", result, msg_ids)


def list_queues(executor) -> List[QueueRecord]:
    """List all queues."""
    logger.debug("list_queues called")
    return _results.queue_records(as_executor(executor).execute(*_statement.list_queues()))


def get_metrics(executor, queue: str) -> QueueMetrics:
    """Get metrics for a specific queue."""
    logger.debug(f"get_metrics called with queue='{queue}'")
    result = as_executor(executor).execute(*_statement.metrics(queue))
    return _results.queue_metrics("get_metrics", result)


def get_metrics_all(executor) -> List[QueueMetrics]:
    """Get metrics for all queues."""
    logger.debug("get_metrics_all called")
    return _results.queue_metrics_list(as_executor(executor).execute(*_statement.metrics_all()))


def queue_size(executor, queue: str) -> int:
    """Number of messages in the queue, visible or not."""
    return get_metrics(executor, queue).queue_length


def archive_size(executor, queue: str) -> int:
    """Number of archived messages, counted straight from ``pgmq.a_<queue>``.

    The extension exposes no function for this, so it reads the archive table
    by its naming convention. Meant for diagnostics and tests.
    """
    logger.debug(f"archive_size called with queue='{queue}'")
    result = as_executor(executor).execute(*_statement.archive_size(queue))
    return _results.single_value("archive_size", result)


@dataclass
class PGMQueue:
    """Queue client bound to one executor.

    Without an ``executor`` a ``PoolExecutor`` is built from the connection
    settings, which default to the ``PG_*`` environment variables.
    """

    host: str = field(default_factory=lambda: os.getenv("PG_HOST", "localhost"))
    port: str = field(default_factory=lambda: os.getenv("PG_PORT", "5432"))
    database: str = field(default_factory=lambda: os.getenv("PG_DATABASE", "postgres"))
    username: str = field(default_factory=lambda: os.getenv("PG_USERNAME", "postgres"))
    password: str = field(default_factory=lambda: os.getenv("PG_PASSWORD", "postgres"))
    vt: int = 30
    pool_size: int = 10
    kwargs: dict = field(default_factory=dict)
    executor: Optional[QueryExecutor] = None
    create_extension: bool = True
    verbose: bool = False
    log_filename: Optional[str] = None
    logger: logging.Logger = field(init=False, repr=False)
    _file_handler: Optional[logging.FileHandler] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self._initialize_logging()
        if self.executor is None:
            self.executor = PoolExecutor(
                host=self.host,
                port=self.port,
                database=self.database,
                username=self.username,
                password=self.password,
                pool_size=self.pool_size,
                kwargs=self.kwargs,
            )
        else:
            self.executor = as_executor(self.executor)
        if self.create_extension:
            self._initialize_extensions()

    def _initialize_logging(self) -> None:
        self.logger = logging.getLogger("pgmq_client")

        if self.verbose:
            log_filename = self.log_filename or datetime.now().strftime("pgmq_debug_%Y%m%d_%H%M%S.log")
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

    def _initialize_extensions(self) -> None:
        self.logger.debug("Initializing pgmq extension")
        self.executor.execute(*_statement.create_extension())

    def close(self) -> None:
        try:
            self.executor.close()
        finally:
            self._close_logging()

    def __enter__(self) -> "PGMQueue":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def validate_queue_name(self, queue: str) -> str:
        return validate_queue_name(queue)

    def create_queue(self, queue: str, unlogged: bool = False) -> None:
        create_queue(self.executor, queue, unlogged=unlogged)

    def create_partitioned_queue(
        self,
        queue: str,
        partition_interval: Any = 10000,
        retention_interval: Any = 100000,
    ) -> None:
        """Create a new partitioned queue. Intervals are message counts or Postgres interval strings."""
        create_queue(
            self.executor,
            queue,
            partition_interval=partition_interval,
            retention_interval=retention_interval,
        )

    def drop_queue(self, queue: str) -> bool:
        return drop_queue(self.executor, queue)

    def purge_queue(self, queue: str) -> int:
        return purge_queue(self.executor, queue)

    def send_message(self, queue: str, payload: PAYLOAD_TYPE, delay: int = 0) -> int:
        return send_message(self.executor, queue, payload, delay)

    def send_messages(self, queue: str, payloads: Sequence[PAYLOAD_TYPE], delay: int = 0) -> List[int]:
        return send_messages(self.executor, queue, payloads, delay)

    def read_message(self, queue: str, vt: Optional[int] = None) -> Optional[Message]:
        return read_message(self.executor, queue, self.vt if vt is None else vt)

    def read_messages(self, queue: str, vt: Optional[int] = None, count: int = 1) -> List[Message]:
        return read_messages(self.executor, queue, self.vt if vt is None else vt, count)

    def read_messages_with_poll(
        self,
        queue: str,
        vt: Optional[int] = None,
        count: int = 1,
        max_poll_seconds: int = DEFAULT_MAX_POLL_SECONDS,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ) -> List[Message]:
        return read_messages_with_poll(
            self.executor,
            queue,
            self.vt if vt is None else vt,
            count,
            max_poll_seconds,
            poll_interval_ms,
        )

    def pop_message(self, queue: str) -> Optional[Message]:
        return pop_message(self.executor, queue)

    def set_message_vt(self, queue: str, message_or_id: MESSAGE_OR_ID, vt: int) -> Message:
        return set_message_vt(self.executor, queue, message_or_id, vt)

    def archive_messages(self, queue: str, messages_or_ids: MESSAGES_OR_IDS) -> None:
        archive_messages(self.executor, queue, messages_or_ids)

    def delete_messages(self, queue: str, messages_or_ids: MESSAGES_OR_IDS) -> None:
        delete_messages(self.executor, queue, messages_or_ids)

    def list_queues(self) -> List[QueueRecord]:
        return list_queues(self.executor)

    def get_metrics(self, queue: str) -> QueueMetrics:
        return get_metrics(self.executor, queue)

    def get_metrics_all(self) -> List[QueueMetrics]:
        return get_metrics_all(self.executor)

    def queue_size(self, queue: str) -> int:
        return queue_size(self.executor, queue)

    def archive_size(self, queue: str) -> int:
        return archive_size(self.executor, queue)
