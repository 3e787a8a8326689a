"""
User service — profile read, sparse update and login for the User aggregate.

Users are read with a ``users LEFT OUTER JOIN articles`` query and folded
into a single nested dict, the same way articles carry their related
items.  Updates are single statements built from the supplied fields only.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.aggregation import aggregate_user
from app.database import UnitOfWork
from app.exceptions import AuthMismatchError, NotFoundError
from app.models import Article, User
from app.updates import build_user_update

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: int) -> dict:
    """
    Return the profile for *user_id* with a summary of their articles.

    Raises NotFoundError when the user does not exist.
    """
    q = (
        select(
            User.id.label("user_id"),
            User.username.label("username"),
            User.display_name.label("display_name"),
            Article.id.label("article_id"),
            Article.name.label("article_name"),
        )
        .outerjoin(Article, Article.user_id == User.id)
        .where(User.id == user_id)
        .order_by(Article.id)
    )
    result = await db.execute(q)
    user = aggregate_user(result.mappings().all())
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def update_user(db: AsyncSession, user_id: int, fields: dict) -> None:
    """
    Apply the explicitly supplied *fields* to *user_id*.

    The statement is built (and validated) before the database is touched.
    Raises NotFoundError when no row was updated.
    """
    stmt = build_user_update(user_id, fields)
    async with UnitOfWork(db):
        result = await db.execute(stmt)
        if result.rowcount == 0:
            raise NotFoundError("User", user_id)

    logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(fields)))


async def login(db: AsyncSession, username: str, token: str) -> dict:
    """
    Return ``{userId, username}`` for the user whose login name and token
    both match exactly.

    Any mismatch, including an unknown login name, raises the same
    AuthMismatchError so callers cannot tell which field was wrong.
    """
    q = select(User.id, User.display_name).where(
        User.username == username, User.token == token
    )
    result = await db.execute(q)
    row = result.first()
    if row is None:
        raise AuthMismatchError()
    return {"userId": row.id, "username": row.display_name}
