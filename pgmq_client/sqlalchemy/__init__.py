from pgmq_client.sqlalchemy.executor import SQLAlchemyExecutor
from pgmq_client.sqlalchemy._utils import is_sqlalchemy_handle

__all__ = ["SQLAlchemyExecutor", "is_sqlalchemy_handle"]
