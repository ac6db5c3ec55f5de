"""RequestLog model.

Append-only, high-volume rows that API consumers never address individually,
so the model has no uuid key.
"""

from __future__ import annotations

from sqlalchemy import Index, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from restful_api.core.base import CreatedAtMixin
from restful_api.models.restful_model import RestfulModel, RuleSet


class RequestLog(CreatedAtMixin, RestfulModel):
    __tablename__ = "request_logs"

    uuid_key = None

    request_log_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    method: Mapped[str] = mapped_column(String(8), nullable=False)
    path: Mapped[str] = mapped_column(String(512), nullable=False)
    status_code: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    __table_args__ = (Index("ix_request_logs_created_at", "created_at"),)

    @classmethod
    def validation_rules(cls) -> RuleSet:
        return {
            "method": "required|string|in:GET,HEAD,POST,PUT,PATCH,DELETE,OPTIONS",
            "path": "required|string|max:512",
            "status_code": "required|integer|min:100|max:599",
        }
