"""Post model.

Posts are soft-deleted, eager load their author on single-resource requests,
and are shaped by PostTransformer. The author is fixed at creation.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import ForeignKey, Integer, String, Text, select
from sqlalchemy.orm import Mapped, column_property, mapped_column, relationship

from restful_api.core.base import CreatedAtMixin, SoftDeleteMixin, UpdatedAtMixin
from restful_api.models.author import Author
from restful_api.models.restful_model import RestfulModel, RuleSet, uuid_column
from restful_api.transformers.post_transformer import PostTransformer


POST_STATUSES = ("draft", "published")


class Post(CreatedAtMixin, UpdatedAtMixin, SoftDeleteMixin, RestfulModel):
    __tablename__ = "posts"

    uuid_key = "post_uuid"
    immutable_attributes = RestfulModel.immutable_attributes + ("author_id", "author_uuid")
    local_with = ("author",)
    transformer = PostTransformer

    post_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_uuid: Mapped[str] = uuid_column()
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("authors.author_id", name="fk_posts_author_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft")

    author: Mapped[Author] = relationship(Author, back_populates="posts")

    @classmethod
    def validation_rules(cls) -> RuleSet:
        return {
            "author_id": "required|integer|min:1",
            "title": "required|string|max:200",
            "body": "nullable|string",
            "status": "sometimes|string|in:" + ",".join(POST_STATUSES),
        }

    @classmethod
    def validation_rules_updating(cls) -> RuleSet:
        return {
            "title": "sometimes|string|max:200",
            "body": "nullable|string",
            "status": "sometimes|string|in:" + ",".join(POST_STATUSES),
        }


# Read-only: the author's uuid, loaded with the row.
Post.author_uuid = column_property(
    select(Author.author_uuid).where(Author.author_id == Post.author_id).correlate_except(Author).scalar_subquery()
)
