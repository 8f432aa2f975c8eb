from typing import List, Optional, Sequence

from pgmq_client._types import STATEMENT_TYPE
from pgmq_client._utils import encode_payload, validate_queue_name

MESSAGE_COLUMNS = "msg_id, read_ct, enqueued_at, vt, message::text"
QUEUE_COLUMNS = "queue_name, is_partitioned, is_unlogged, created_at"
METRICS_COLUMNS = "queue_name, queue_length, newest_msg_age_sec, oldest_msg_age_sec, total_messages, scrape_time"

DEFAULT_MAX_POLL_SECONDS = 5
DEFAULT_POLL_INTERVAL_MS = 250


def _check_non_negative(name: str, value: int) -> int:
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


def _check_positive(name: str, value: int) -> int:
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return value


def create_queue(
    queue_name: str,
    unlogged: bool = False,
    partition_interval: Optional[str] = None,
    retention_interval: Optional[str] = None,
) -> STATEMENT_TYPE:
    """Create a new queue, optionally unlogged or partitioned."""
    validate_queue_name(queue_name)
    partitioned = partition_interval is not None or retention_interval is not None
    if unlogged and partitioned:
        raise ValueError("a queue can be unlogged or partitioned, not both")
    if partitioned:
        if partition_interval is None or retention_interval is None:
            raise ValueError("partitioned queues require both partition_interval and retention_interval")
        return (
            "select pgmq.create_partitioned(%s::text, %s::text, %s::text);",
            (queue_name, str(partition_interval), str(retention_interval)),
        )
    if unlogged:
        return "select pgmq.create_unlogged(%s::text);", (queue_name,)
    return "select pgmq.create(%s::text);", (queue_name,)


def drop_queue(queue_name: str) -> STATEMENT_TYPE:
    return "select pgmq.drop_queue(%s::text);", (queue_name,)


def purge_queue(queue_name: str) -> STATEMENT_TYPE:
    return "select pgmq.purge_queue(%s::text);", (queue_name,)


def send(queue_name: str, payload, delay: int = 0) -> STATEMENT_TYPE:
    """Send one pre-encoded payload."""
    _check_non_negative("delay", delay)
    return (
        "select * from pgmq.send(%s::text, %s::jsonb, %s::integer);",
        (queue_name, encode_payload(payload), delay),
    )


def send_batch(queue_name: str, payloads: Sequence, delay: int = 0) -> STATEMENT_TYPE:
    """Send an ordered, non-empty batch of pre-encoded payloads."""
    _check_non_negative("delay", delay)
    encoded = [encode_payload(payload) for payload in payloads]
    if not encoded:
        raise ValueError("send_messages requires at least one payload")
    return (
        "select * from pgmq.send_batch(%s::text, %s::jsonb[], %s::integer);",
        (queue_name, encoded, delay),
    )


def read(queue_name: str, vt: int, qty: int = 1) -> STATEMENT_TYPE:
    _check_non_negative("vt", vt)
    _check_non_negative("count", qty)
    return (
        f"select {MESSAGE_COLUMNS} from pgmq.read(%s::text, %s::integer, %s::integer);",
        (queue_name, vt, qty),
    )


def read_with_poll(
    queue_name: str,
    vt: int,
    qty: int,
    max_poll_seconds: int = DEFAULT_MAX_POLL_SECONDS,
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
) -> STATEMENT_TYPE:
    """The extension polls server-side; the client issues exactly one blocking call."""
    _check_non_negative("vt", vt)
    _check_non_negative("count", qty)
    _check_positive("max_poll_seconds", max_poll_seconds)
    _check_positive("poll_interval_ms", poll_interval_ms)
    return (
        f"select {MESSAGE_COLUMNS} from pgmq.read_with_poll("
        "%s::text, %s::integer, %s::integer, %s::integer, %s::integer);",
        (queue_name, vt, qty, max_poll_seconds, poll_interval_ms),
    )


def pop(queue_name: str) -> STATEMENT_TYPE:
    return f"select {MESSAGE_COLUMNS} from pgmq.pop(%s::text);", (queue_name,)


def set_vt(queue_name: str, msg_id: int, vt: int) -> STATEMENT_TYPE:
    _check_non_negative("vt", vt)
    return (
        f"select {MESSAGE_COLUMNS} from pgmq.set_vt(%s::text, %s::bigint, %s::integer);",
        (queue_name, msg_id, vt),
    )


def archive(queue_name: str, msg_id: int) -> STATEMENT_TYPE:
    return "select pgmq.archive(%s::text, %s::bigint);", (queue_name, msg_id)


def archive_batch(queue_name: str, msg_ids: List[int]) -> STATEMENT_TYPE:
    return "select * from pgmq.archive(%s::text, %s::bigint[]);", (queue_name, list(msg_ids))


def delete(queue_name: str, msg_id: int) -> STATEMENT_TYPE:
    return "select pgmq.delete(%s::text, %s::bigint);", (queue_name, msg_id)


def delete_batch(queue_name: str, msg_ids: List[int]) -> STATEMENT_TYPE:
    return "select * from pgmq.delete(%s::text, %s::bigint[]);", (queue_name, list(msg_ids))


def list_queues() -> STATEMENT_TYPE:
    return f"select {QUEUE_COLUMNS} from pgmq.list_queues();", ()


def metrics(queue_name: str) -> STATEMENT_TYPE:
    return f"select {METRICS_COLUMNS} from pgmq.metrics(%s::text);", (queue_name,)


def metrics_all() -> STATEMENT_TYPE:
    return f"select {METRICS_COLUMNS} from pgmq.metrics_all();", ()


def archive_size(queue_name: str) -> STATEMENT_TYPE:
    """Count rows of the archive table directly. Diagnostics only."""
    validate_queue_name(queue_name)
    return f'select count(*) from pgmq."a_{queue_name}";', ()


def create_extension() -> STATEMENT_TYPE:
    return "create extension if not exists pgmq cascade;", ()
