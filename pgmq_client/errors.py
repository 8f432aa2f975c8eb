class PgmqError(Exception):
    """Base exception for pgmq client errors"""
    pass


class ShapeViolationError(PgmqError):
    """Raised when a result set does not have the rows or columns an operation expects"""

    def __init__(self, operation: str, expected: str, columns=None, rows=None) -> None:
        self.operation = operation
        self.expected = expected
        self.columns = list(columns or [])
        self.rows = list(rows or [])
        super().__init__(
            f"{operation}: expected {expected}, got {len(self.rows)} row(s) with columns {self.columns}"
        )


class SendError(PgmqError):
    """Raised when a send did not yield a message id"""

    def __init__(self, queue: str, result=None) -> None:
        self.queue = queue
        self.result = result
        super().__init__(f"sending to queue '{queue}' did not return a message id: {result!r}")


class InvalidQueueNameError(PgmqError, ValueError):
    """Raised when a queue name is rejected before reaching the database"""
    pass
