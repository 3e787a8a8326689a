"""
Article service — reads and writes for the Article aggregate.

Design notes
------------
- Reads are a single ``articles LEFT OUTER JOIN related`` query ordered
  by article id then related id; the flat rows are folded into nested
  articles by ``app.aggregation``.  The ORM relationships stay unloaded.
- Both writes run inside one ``UnitOfWork``: the article insert is
  flushed to obtain its generated id before anything is committed, the
  related rows go in as one executemany batch, and commit is the only
  point where other readers can see either.
- Delete removes related rows first (referential order), then the
  article; a zero rowcount on the article delete means the id did not
  exist and the unit is rolled back with the children restored.
"""
import logging

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.aggregation import aggregate_article, aggregate_articles, related_entry
from app.database import UnitOfWork
from app.exceptions import NotFoundError
from app.models import Article, Related
from app.schemas import ArticleCreate

logger = logging.getLogger(__name__)


def _article_rows_query():
    return (
        select(
            Article.id.label("article_id"),
            Article.name.label("article_name"),
            Article.user_id.label("user_id"),
            Related.id.label("related_id"),
            Related.type.label("related_type"),
            Related.url.label("related_url"),
            Related.content.label("related_content"),
        )
        .outerjoin(Related, Related.article_id == Article.id)
        .order_by(Article.id, Related.id)
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_articles(db: AsyncSession) -> list[dict]:
    """Return every article with its related items, ordered by article id."""
    result = await db.execute(_article_rows_query())
    return aggregate_articles(result.mappings().all())


async def get_article(db: AsyncSession, article_id: int) -> dict:
    """
    Return the nested article for *article_id*.

    Raises NotFoundError when no row matches.
    """
    q = _article_rows_query().where(Article.id == article_id)
    result = await db.execute(q)
    article = aggregate_article(result.mappings().all())
    if article is None:
        raise NotFoundError("Article", article_id)
    return article


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def _insert_related(
    db: AsyncSession, article_id: int, user_id: int, items: list[dict]
) -> None:
    """Insert every related item in one batched statement."""
    await db.execute(
        insert(Related),
        [
            {
                "type": item["type"],
                "url": item["url"],
                "content": item["content"],
                "article_id": article_id,
                "user_id": user_id,
            }
            for item in items
        ],
    )


async def create_article(db: AsyncSession, data: ArticleCreate) -> dict:
    """
    Create an article and all of its related items atomically.

    Either the article and every related row exist after this call, or
    none of them do.  The ``userId`` is stored as given.
    """
    items = [item.model_dump() for item in data.related]

    async with UnitOfWork(db):
        article = Article(name=data.name, user_id=data.user_id)
        db.add(article)
        await db.flush()

        if items:
            await _insert_related(db, article.id, data.user_id, items)

    logger.info("Created article %s with %d related item(s)", article.id, len(items))
    created = {"id": str(article.id), "name": article.name, "userId": article.user_id}
    created["related"] = [related_entry(created, item) for item in items]
    return created


async def delete_article(db: AsyncSession, article_id: int) -> None:
    """
    Delete *article_id* and its related items in one unit of work.

    Raises NotFoundError, leaving the store unchanged, when the article
    does not exist.
    """
    async with UnitOfWork(db):
        await db.execute(delete(Related).where(Related.article_id == article_id))
        result = await db.execute(delete(Article).where(Article.id == article_id))
        if result.rowcount == 0:
            raise NotFoundError("Article", article_id)

    logger.info("Deleted article %s", article_id)
