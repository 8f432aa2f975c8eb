from typing import Any, List, Literal, NamedTuple, Sequence, Tuple, Union

from pgmq_client.messages import Message

PARAM_STYLE_TYPE = Literal["qmark", "numeric", "named", "format", "pyformat", "numeric_dollar"]
STATEMENT_TYPE = Tuple[str, Tuple[Any, ...]]
MESSAGE_OR_ID = Union[Message, int]
MESSAGES_OR_IDS = Union[Sequence[Message], Sequence[int]]
PAYLOAD_TYPE = Union[str, bytes, Any]


class QueryResult(NamedTuple):
    """Column names and row tuples returned by one query."""

    columns: List[str]
    rows: List[Tuple[Any, ...]]


__all__ = [
    "PARAM_STYLE_TYPE",
    "STATEMENT_TYPE",
    "MESSAGE_OR_ID",
    "MESSAGES_OR_IDS",
    "PAYLOAD_TYPE",
    "QueryResult",
]
