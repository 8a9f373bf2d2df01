"""
Database dependencies.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from accessgate.models.database import async_session_factory


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Session factory for services.

    Services open one session per unit of work instead of sharing a
    request-scoped session, so concurrent calls never share a transaction.
    """
    return async_session_factory
