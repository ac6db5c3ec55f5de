"""Author model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from restful_api.core.base import CreatedAtMixin, UpdatedAtMixin
from restful_api.models.restful_model import RestfulModel, RuleSet, uuid_column

if TYPE_CHECKING:  # pragma: no cover
    from restful_api.models.post import Post


class Author(CreatedAtMixin, UpdatedAtMixin, RestfulModel):
    __tablename__ = "authors"

    uuid_key = "author_uuid"
    hidden_attributes = ("password_hash",)

    author_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_uuid: Mapped[str] = uuid_column()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # posts.author_id is NOT NULL with ON DELETE CASCADE: loaded posts are deleted
    # by the ORM, unloaded ones by the database.
    posts: Mapped[list["Post"]] = relationship(
        "Post",
        back_populates="author",
        cascade="save-update, merge, delete",
        passive_deletes=True,
    )

    @classmethod
    def validation_rules(cls) -> RuleSet:
        return {
            "name": "required|string|max:255",
            "email": "required|email|max:255",
        }

    @classmethod
    def validation_messages(cls) -> dict[str, str]:
        return {"email.email": "Please provide a valid email address."}
