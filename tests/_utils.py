from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence, Tuple

from pgmq_client import QueryResult

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
MESSAGE_COLUMNS = ["msg_id", "read_ct", "enqueued_at", "vt", "message"]
METRICS_COLUMNS = [
    "queue_name",
    "queue_length",
    "newest_msg_age_sec",
    "oldest_msg_age_sec",
    "total_messages",
    "scrape_time",
]


def message_row(msg_id: int, body: str = '{"hello": "world"}', read_ct: int = 1) -> tuple:
    return (msg_id, read_ct, NOW, NOW, body)


def message_result(*rows: tuple) -> QueryResult:
    return QueryResult(list(MESSAGE_COLUMNS), list(rows))


def scalar_result(column: str, *values: Any) -> QueryResult:
    return QueryResult([column], [(value,) for value in values])


class RecordingExecutor:
    """In-memory executor that records queries and replays scripted results."""

    def __init__(self, *results: QueryResult) -> None:
        self.results: List[QueryResult] = list(results)
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.closed = False

    def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        self.calls.append((query, tuple(params or ())))
        if self.results:
            return self.results.pop(0)
        return QueryResult([], [])

    def close(self) -> None:
        self.closed = True

    @property
    def last_query(self) -> str:
        return self.calls[-1][0]

    @property
    def last_params(self) -> Tuple[Any, ...]:
        return self.calls[-1][1]


class AsyncRecordingExecutor(RecordingExecutor):
    async def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        return RecordingExecutor.execute(self, query, params)

    async def close(self) -> None:
        self.closed = True
