"""Decoders turning a ``QueryResult`` into the typed value an operation returns.

Every decoder checks the row/column shape it relies on and raises
``ShapeViolationError`` when the extension answered with something else.
"""

from typing import List, Optional, Sequence

from pgmq_client._types import QueryResult
from pgmq_client.errors import SendError, ShapeViolationError
from pgmq_client.messages import Message, QueueMetrics, QueueRecord


def _violation(operation: str, expected: str, result: QueryResult) -> ShapeViolationError:
    return ShapeViolationError(operation, expected, columns=result.columns, rows=result.rows)


def single_row(operation: str, result: QueryResult, width: Optional[int] = None) -> tuple:
    if len(result.rows) != 1 or (width is not None and len(result.rows[0]) != width):
        expected = "exactly one row" if width is None else f"exactly one row of {width} column(s)"
        raise _violation(operation, expected, result)
    return result.rows[0]


def single_value(operation: str, result: QueryResult):
    return single_row(operation, result, width=1)[0]


def executed(operation: str, result: QueryResult) -> None:
    single_row(operation, result)


def sent_id(queue_name: str, result: QueryResult) -> int:
    if len(result.rows) != 1 or not result.rows[0] or not isinstance(result.rows[0][0], int):
        raise SendError(queue_name, result)
    return result.rows[0][0]


def sent_ids(queue_name: str, result: QueryResult, expected_count: int) -> List[int]:
    ids = [row[0] for row in result.rows if row and isinstance(row[0], int)]
    if len(ids) != expected_count or len(ids) != len(result.rows):
        raise SendError(queue_name, result)
    return ids


def optional_message(operation: str, result: QueryResult) -> Optional[Message]:
    if not result.rows:
        return None
    if len(result.rows) > 1:
        raise _violation(operation, "at most one message row", result)
    return Message.from_row(result.rows[0])


def messages(operation: str, result: QueryResult, limit: int) -> List[Message]:
    if len(result.rows) > limit:
        raise _violation(operation, f"at most {limit} message row(s)", result)
    return [Message.from_row(row) for row in result.rows]


def message(operation: str, result: QueryResult) -> Message:
    return Message.from_row(single_row(operation, result))


def acknowledged(operation: str, result: QueryResult) -> None:
    if single_value(operation, result) is not True:
        raise _violation(operation, "a single true value", result)


def acknowledged_ids(operation: str, result: QueryResult, msg_ids: Sequence[int]) -> None:
    returned = [row[0] for row in result.rows if len(row) == 1]
    if len(returned) != len(result.rows) or len(set(returned)) != len(returned) or set(returned) != set(msg_ids):
        raise _violation(operation, f"one row per message id {list(msg_ids)}", result)


def _rows_of_width(operation: str, result: QueryResult, width: int) -> List[tuple]:
    if any(len(row) != width for row in result.rows):
        raise _violation(operation, f"rows of {width} column(s)", result)
    return result.rows


def queue_records(result: QueryResult) -> List[QueueRecord]:
    return [QueueRecord.from_row(row) for row in _rows_of_width("list_queues", result, 4)]


def queue_metrics(operation: str, result: QueryResult) -> QueueMetrics:
    return QueueMetrics.from_row(single_row(operation, result, width=6))


def queue_metrics_list(result: QueryResult) -> List[QueueMetrics]:
    return [QueueMetrics.from_row(row) for row in _rows_of_width("get_metrics_all", result, 6)]
