from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from orjson import loads

from pgmq_client.errors import ShapeViolationError


@dataclass(frozen=True)
class Message:
    """A message read back from a queue.

    ``message`` holds the payload as JSON text, exactly as the extension stores
    it. Rows produced by send-style projections only carry ``msg_id`` and
    ``message``; the remaining fields are ``None`` for those.
    """

    msg_id: int
    message: str
    read_ct: Optional[int] = None
    enqueued_at: Optional[datetime] = None
    vt: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "Message":
        if len(row) == 5:
            return cls(msg_id=row[0], read_ct=row[1], enqueued_at=row[2], vt=row[3], message=row[4])
        if len(row) == 2:
            return cls(msg_id=row[0], message=row[1])
        raise ShapeViolationError("Message.from_row", "a 5-column or 2-column message row", rows=[row])

    @property
    def id(self) -> int:
        return self.msg_id

    @property
    def body(self) -> str:
        return self.message

    @property
    def read_count(self) -> Optional[int]:
        return self.read_ct

    @property
    def visibility_timeout(self) -> Optional[datetime]:
        return self.vt

    def json(self) -> Any:
        """Decode the payload."""
        return loads(self.message)


@dataclass(frozen=True)
class QueueRecord:
    queue_name: str
    is_partitioned: bool
    is_unlogged: bool
    created_at: datetime

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "QueueRecord":
        if len(row) != 4:
            raise ShapeViolationError("QueueRecord.from_row", "a 4-column queue row", rows=[row])
        return cls(queue_name=row[0], is_partitioned=row[1], is_unlogged=row[2], created_at=row[3])


@dataclass(frozen=True)
class QueueMetrics:
    queue_name: str
    queue_length: int
    newest_msg_age_sec: Optional[int]
    oldest_msg_age_sec: Optional[int]
    total_messages: int
    scrape_time: datetime

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "QueueMetrics":
        if len(row) != 6:
            raise ShapeViolationError("QueueMetrics.from_row", "a 6-column metrics row", rows=[row])
        return cls(
            queue_name=row[0],
            queue_length=row[1],
            newest_msg_age_sec=row[2],
            oldest_msg_age_sec=row[3],
            total_messages=row[4],
            scrape_time=row[5],
        )
