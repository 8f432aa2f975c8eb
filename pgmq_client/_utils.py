import itertools
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from orjson import dumps

from pgmq_client._types import MESSAGE_OR_ID, MESSAGES_OR_IDS, PARAM_STYLE_TYPE, PAYLOAD_TYPE
from pgmq_client.errors import InvalidQueueNameError
from pgmq_client.messages import Message

MAX_QUEUE_NAME_LENGTH = 47
QUEUE_NAME_PATTERN = re.compile(rf"^[a-z][a-z0-9_]{{0,{MAX_QUEUE_NAME_LENGTH - 1}}}$")

_PLACEHOLDER = re.compile(r"%s")


def validate_queue_name(queue_name: str) -> str:
    if not isinstance(queue_name, str) or not QUEUE_NAME_PATTERN.match(queue_name):
        raise InvalidQueueNameError(
            f"invalid queue name {queue_name!r}: must start with a lowercase letter, contain only "
            f"lowercase letters, digits and '_', and be at most {MAX_QUEUE_NAME_LENGTH} characters"
        )
    return queue_name


def encode_payload(payload: PAYLOAD_TYPE) -> str:
    """JSON text is passed through untouched; anything else is serialized with orjson."""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload).decode("utf-8")
    return dumps(payload).decode("utf-8")


def payload_list(payloads: Sequence[PAYLOAD_TYPE]) -> List[PAYLOAD_TYPE]:
    if isinstance(payloads, (str, bytes, bytearray, memoryview)):
        raise TypeError("send_messages expects a sequence of payloads, not a single payload")
    return list(payloads)


def message_id_of(message_or_id: MESSAGE_OR_ID) -> int:
    if isinstance(message_or_id, Message):
        return message_or_id.msg_id
    if isinstance(message_or_id, bool) or not isinstance(message_or_id, int):
        raise TypeError(f"expected a Message or an integer message id, got {message_or_id!r}")
    return message_or_id


def normalize_message_ids(messages_or_ids: Union[MESSAGES_OR_IDS, MESSAGE_OR_ID]) -> List[int]:
    """Project a homogeneous list of messages or ids to a list of ids."""
    if isinstance(messages_or_ids, (Message, int)):
        messages_or_ids = [messages_or_ids]
    items = list(messages_or_ids)
    if not items:
        raise ValueError("at least one message or message id is required")

    records = [isinstance(item, Message) for item in items]
    if any(records) and not all(records):
        raise TypeError("cannot mix Message records and raw message ids in one call")
    return [message_id_of(item) for item in items]


def convert_placeholders(
    query: str,
    params: Optional[Sequence[Any]],
    paramstyle: PARAM_STYLE_TYPE,
) -> Tuple[str, Union[Tuple[Any, ...], Dict[str, Any]]]:
    """Rewrite ``%s`` placeholders into the given DB-API paramstyle."""
    params = tuple(params or ())
    if paramstyle in ("format", "pyformat"):
        return query, params

    counter = itertools.count(1)
    if paramstyle == "numeric_dollar":
        return _PLACEHOLDER.sub(lambda _: f"${next(counter)}", query), params
    if paramstyle == "numeric":
        return _PLACEHOLDER.sub(lambda _: f":{next(counter)}", query), params
    if paramstyle == "qmark":
        return _PLACEHOLDER.sub("?", query), params
    if paramstyle == "named":
        converted = _PLACEHOLDER.sub(lambda _: f":p{next(counter)}", query)
        return converted, {f"p{index}": value for index, value in enumerate(params, start=1)}
    raise ValueError(f"unsupported paramstyle: {paramstyle}")
