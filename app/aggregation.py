"""
Parent/child aggregation of flat join rows.

An outer join of a parent table with a child table returns one row per
parent x child pair, and a single row with every child column null when
the parent has no children.  The helpers here fold such rows back into
nested dicts without touching the database:

- a parent is created the first time its key is seen, so the result
  follows the order of the rows (the queries order by parent id);
- a row adds a child only when its child key is not null;
- children keep the order in which their rows arrived.

Rows are mappings (``result.mappings().all()``) whose keys are the
labels used by the service queries.
"""
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

Row = Mapping[str, Any]


def aggregate(
    rows: Iterable[Row],
    *,
    parent_key: str,
    child_key: str,
    build_parent: Callable[[Row], dict],
    build_child: Callable[[Row, dict], dict],
    children: str,
) -> list[dict]:
    """
    Group *rows* into parent dicts, each carrying a *children* list.

    *build_child* receives the row and the parent dict it belongs to.
    """
    parents: dict[Any, dict] = {}
    for row in rows:
        key = row[parent_key]
        parent = parents.get(key)
        if parent is None:
            parent = build_parent(row)
            parent[children] = []
            parents[key] = parent
        if row[child_key] is not None:
            parent[children].append(build_child(row, parent))
    return list(parents.values())


def aggregate_one(
    rows: Sequence[Row],
    *,
    parent_key: str,
    child_key: str,
    build_parent: Callable[[Row], dict],
    build_child: Callable[[Row, dict], dict],
    children: str,
) -> dict | None:
    """
    Build a single parent from *rows*.

    The header comes from the first row; children are collected from
    every row sharing that parent key, whichever row supplied the header.
    Returns None for an empty row set, and a parent with an empty
    *children* list when every child key is null.
    """
    if not rows:
        return None
    first = rows[0]
    parent = build_parent(first)
    parent[children] = [
        build_child(row, parent)
        for row in rows
        if row[parent_key] == first[parent_key] and row[child_key] is not None
    ]
    return parent


# ---------------------------------------------------------------------------
# Article shape
# ---------------------------------------------------------------------------

def _article_header(row: Row) -> dict:
    return {
        "id": str(row["article_id"]),
        "name": row["article_name"],
        "userId": row["user_id"],
    }


def _related_entry(row: Row, article: dict) -> dict:
    return {
        "type": row["related_type"],
        "url": row["related_url"],
        # Echoes the article name; the related table has no description.
        "description": article["name"],
        "content": row["related_content"],
    }


_ARTICLE_SHAPE = dict(
    parent_key="article_id",
    child_key="related_id",
    build_parent=_article_header,
    build_child=_related_entry,
    children="related",
)


def aggregate_articles(rows: Iterable[Row]) -> list[dict]:
    return aggregate(rows, **_ARTICLE_SHAPE)


def aggregate_article(rows: Sequence[Row]) -> dict | None:
    return aggregate_one(rows, **_ARTICLE_SHAPE)


def related_entry(article: dict, item: Mapping[str, Any]) -> dict:
    """Nested representation of a related item that has just been written."""
    return _related_entry(
        {
            "related_type": item["type"],
            "related_url": item["url"],
            "related_content": item["content"],
        },
        article,
    )


# ---------------------------------------------------------------------------
# User shape
# ---------------------------------------------------------------------------

def _user_header(row: Row) -> dict:
    return {
        "userId": row["user_id"],
        "username": row["display_name"],
        "usernameId": row["username"],
    }


def _article_summary(row: Row, user: dict) -> dict:
    return {"articleId": row["article_id"], "name": row["article_name"]}


def aggregate_user(rows: Sequence[Row]) -> dict | None:
    return aggregate_one(
        rows,
        parent_key="user_id",
        child_key="article_id",
        build_parent=_user_header,
        build_child=_article_summary,
        children="articles",
    )
