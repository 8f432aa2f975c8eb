import pytest

from pgmq_client import PGMQueue
from tests._utils import RecordingExecutor


@pytest.fixture(scope="function")
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture(scope="function")
def pgmq_queue(executor) -> PGMQueue:
    return PGMQueue(executor=executor, create_extension=False)
