import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.exceptions import StoreError

logger = logging.getLogger(__name__)

# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    """
    Yield one session per request and release it on every exit path.

    Reads run in the session's implicit transaction and end with the
    close; writes define their own boundary through ``UnitOfWork``.
    A failure to close is logged and never replaces the request outcome.
    """
    session = async_session()
    try:
        yield session
    finally:
        try:
            await session.close()
        except Exception as exc:
            logger.warning("Error closing database session: %s", exc)


class UnitOfWork:
    """
    A group of statements that commit or roll back together.

    Usage::

        async with UnitOfWork(db):
            db.add(parent)
            await db.flush()          # generated key visible, not committed
            await db.execute(...)

    Commit is the single visibility boundary.  Any exception rolls the
    whole unit back; database failures are logged with their cause and
    re-raised as an opaque ``StoreError``, other exceptions (``NotFoundError``
    and friends) propagate unchanged.  A rollback that itself fails is
    logged and suppressed so the primary error still reaches the caller.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def begin(self) -> None:
        # The session may already have auto-begun; adopt that transaction.
        if not self.session.in_transaction():
            await self.session.begin()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        try:
            await self.session.rollback()
        except Exception as exc:
            logger.error("Rollback failed: %s", exc)

    async def __aenter__(self) -> "UnitOfWork":
        try:
            await self.begin()
        except SQLAlchemyError as exc:
            logger.exception("Could not begin unit of work")
            raise StoreError() from exc
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            try:
                await self.commit()
            except SQLAlchemyError as commit_exc:
                logger.exception("Commit failed, rolling back")
                await self.rollback()
                raise StoreError() from commit_exc
            return False

        await self.rollback()
        if isinstance(exc, SQLAlchemyError):
            logger.error("Unit of work rolled back: %s", exc, exc_info=(exc_type, exc, tb))
            raise StoreError() from exc
        return False
