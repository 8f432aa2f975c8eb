from typing import Union

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncSession
from sqlalchemy.orm import Session

SYNC_HANDLE_TYPE = Union[Engine, Connection, Session]


def is_sqlalchemy_handle(handle) -> bool:
    return isinstance(handle, (Engine, Connection, Session))


def is_async_handle(handle) -> bool:
    return isinstance(handle, (AsyncEngine, AsyncConnection, AsyncSession))


def get_paramstyle(connection: Connection) -> str:
    return connection.dialect.paramstyle
