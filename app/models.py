from __future__ import annotations

from typing import List, Optional

from sqlalchemy import ForeignKey, Integer, Sequence, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Login name; the business key compared on /login.
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String(150), nullable=False)
    # Opaque bearer token, compared by equality only.
    token: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Relationships never load implicitly; reads are explicit joins in the services
    articles: Mapped[List["Article"]] = relationship(
        "Article", back_populates="owner", lazy="raise"
    )


# ---------------------------------------------------------------------------
# Article
# ---------------------------------------------------------------------------
class Article(Base):
    __tablename__ = "articles"

    # The sequence is used on backends that have them (Postgres, Oracle);
    # SQLite falls back to its rowid autoincrement.
    id: Mapped[int] = mapped_column(
        Integer, Sequence("articles_id_seq"), primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(300), nullable=False)

    # Foreign key; existence of the user is not checked by the write path.
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )

    owner: Mapped["User"] = relationship("User", back_populates="articles", lazy="raise")
    related: Mapped[List["Related"]] = relationship(
        "Related", back_populates="article", lazy="raise"
    )


# ---------------------------------------------------------------------------
# Related
# ---------------------------------------------------------------------------
class Related(Base):
    __tablename__ = "related"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    url: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    article_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("articles.id"), nullable=False, index=True
    )
    # Attribution only, stamped at creation time.
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)

    article: Mapped["Article"] = relationship("Article", back_populates="related", lazy="raise")
