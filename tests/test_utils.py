import pytest

from pgmq_client import InvalidQueueNameError, Message, normalize_message_ids, validate_queue_name
from pgmq_client._utils import MAX_QUEUE_NAME_LENGTH, convert_placeholders, encode_payload

QUERY = "select * from pgmq.send(%s::text, %s::jsonb, %s::integer);"


def test_validate_queue_name():
    assert validate_queue_name("a") == "a"
    assert validate_queue_name("my_queue_2") == "my_queue_2"
    assert validate_queue_name("a" * MAX_QUEUE_NAME_LENGTH) == "a" * MAX_QUEUE_NAME_LENGTH


@pytest.mark.parametrize("queue_name", ["", "_queue", "9queue", "Queue", "my queue", "a" * 48, None])
def test_validate_queue_name_rejects(queue_name):
    with pytest.raises(InvalidQueueNameError):
        validate_queue_name(queue_name)


def test_invalid_queue_name_is_value_error():
    with pytest.raises(ValueError):
        validate_queue_name("Bad")


def test_encode_payload():
    assert encode_payload('{"a": 1}') == '{"a": 1}'
    assert encode_payload(b"[1,2]") == "[1,2]"
    assert encode_payload({"a": [1, 2]}) == '{"a":[1,2]}'
    assert encode_payload(1) == "1"


def test_normalize_message_ids_from_ids():
    assert normalize_message_ids([3, 1, 2]) == [3, 1, 2]


def test_normalize_message_ids_from_messages():
    messages = [Message(msg_id=5, message="1"), Message(msg_id=6, message="2")]
    assert normalize_message_ids(messages) == [5, 6]


def test_normalize_message_ids_scalar():
    assert normalize_message_ids(4) == [4]
    assert normalize_message_ids(Message(msg_id=4, message="1")) == [4]


@pytest.mark.parametrize("value", [[1, Message(msg_id=2, message="1")], ["1"], [True], [1.0]])
def test_normalize_message_ids_rejects(value):
    with pytest.raises(TypeError):
        normalize_message_ids(value)


def test_normalize_message_ids_empty():
    with pytest.raises(ValueError):
        normalize_message_ids([])


@pytest.mark.parametrize("paramstyle", ["format", "pyformat"])
def test_convert_placeholders_passthrough(paramstyle):
    assert convert_placeholders(QUERY, ["q", "1", 0], paramstyle) == (QUERY, ("q", "1", 0))


def test_convert_placeholders_numeric_dollar():
    query, params = convert_placeholders(QUERY, ["q", "1", 0], "numeric_dollar")
    assert query == "select * from pgmq.send($1::text, $2::jsonb, $3::integer);"
    assert params == ("q", "1", 0)


def test_convert_placeholders_numeric():
    query, _ = convert_placeholders(QUERY, ["q", "1", 0], "numeric")
    assert query == "select * from pgmq.send(:1::text, :2::jsonb, :3::integer);"


def test_convert_placeholders_qmark():
    query, _ = convert_placeholders(QUERY, ["q", "1", 0], "qmark")
    assert query == "select * from pgmq.send(?::text, ?::jsonb, ?::integer);"


def test_convert_placeholders_named():
    query, params = convert_placeholders(QUERY, ["q", "1", 0], "named")
    assert query == "select * from pgmq.send(:p1::text, :p2::jsonb, :p3::integer);"
    assert params == {"p1": "q", "p2": "1", "p3": 0}


def test_convert_placeholders_without_params():
    assert convert_placeholders("select 1;", None, "numeric_dollar") == ("select 1;", ())


def test_convert_placeholders_unknown_style():
    with pytest.raises(ValueError):
        convert_placeholders(QUERY, [], "bogus")
