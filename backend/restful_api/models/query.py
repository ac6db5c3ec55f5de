"""Query builder for RestfulModel.

Wraps a `Select` for one model and the `Session` it runs against. Builder
methods return a new RestfulQuery, so partially built queries can be reused.
Soft-deleting models are filtered to live rows unless `with_trashed()` is set.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, Iterable, Optional, TypeVar

from sqlalchemy import false, func, or_, select
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.sql.selectable import Select

from restful_api.core.base import SoftDeleteMixin, utcnow
from restful_api.core.errors import ResourceNotFoundError
from restful_api.core.identifiers import ByExternalId, classify_identifier, split_identifiers

if TYPE_CHECKING:  # pragma: no cover
    from restful_api.models.restful_model import RestfulModel


logger = logging.getLogger(__name__)

M = TypeVar("M", bound="RestfulModel")


def _as_list(values: Any) -> list[Any]:
    if isinstance(values, (str, bytes, int)) or not isinstance(values, Iterable):
        return [values]
    return list(values)


class RestfulQuery(Generic[M]):
    def __init__(
        self,
        model: type[M],
        session: Session,
        stmt: Optional[Select[Any]] = None,
        *,
        include_trashed: bool = False,
    ) -> None:
        self.model = model
        self.session = session
        self._stmt: Select[Any] = stmt if stmt is not None else select(model)
        self._include_trashed = include_trashed

    def _derive(self, stmt: Select[Any], **overrides: Any) -> RestfulQuery[M]:
        return RestfulQuery(
            self.model,
            self.session,
            stmt,
            include_trashed=overrides.get("include_trashed", self._include_trashed),
        )

    @property
    def soft_deletes(self) -> bool:
        return issubclass(self.model, SoftDeleteMixin)

    def statement(self) -> Select[Any]:
        stmt = self._stmt
        if self.soft_deletes and not self._include_trashed:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        return stmt

    # -- builders -------------------------------------------------------

    def where(self, *criteria: Any) -> RestfulQuery[M]:
        return self._derive(self._stmt.where(*criteria))

    def where_key(self, values: Any) -> RestfulQuery[M]:
        column = getattr(self.model, self.model.get_key_name())
        return self.where(column.in_(_as_list(values)))

    def where_uuid(self, values: Any) -> RestfulQuery[M]:
        key = self.model.get_uuid_key_name()
        if not key:
            raise TypeError(f"{self.model.__name__} has no uuid key.")
        uuids = [str(v).lower() for v in _as_list(values)]
        return self.where(getattr(self.model, key).in_(uuids))

    def where_identifiers(self, values: Any) -> RestfulQuery[M]:
        """Match any of a mix of primary keys and uuids."""
        internal, external = split_identifiers(values)
        clauses = []
        if internal:
            clauses.append(getattr(self.model, self.model.get_key_name()).in_(internal))
        if external:
            key = self.model.get_uuid_key_name()
            if key:
                clauses.append(getattr(self.model, key).in_(external))
        return self.where(or_(*clauses) if clauses else false())

    def with_local(self) -> RestfulQuery[M]:
        """Eager load the model's `local_with` relations."""
        options = [selectinload(getattr(self.model, name)) for name in self.model.local_with]
        if not options:
            return self
        return self._derive(self._stmt.options(*options))

    def with_trashed(self) -> RestfulQuery[M]:
        return self._derive(self._stmt, include_trashed=True)

    def order_by(self, *clauses: Any) -> RestfulQuery[M]:
        return self._derive(self._stmt.order_by(*clauses))

    def limit(self, limit: Optional[int]) -> RestfulQuery[M]:
        return self._derive(self._stmt.limit(limit))

    def offset(self, offset: Optional[int]) -> RestfulQuery[M]:
        return self._derive(self._stmt.offset(offset))

    # -- execution ------------------------------------------------------

    def all(self) -> list[M]:
        return list(self.session.scalars(self.statement()).all())

    def first(self) -> Optional[M]:
        return self.session.scalars(self.statement().limit(1)).first()

    def count(self) -> int:
        stmt = self.statement().order_by(None).limit(None).offset(None)
        return self.session.scalar(select(func.count()).select_from(stmt.subquery())) or 0

    def find(self, identifier: Any) -> Optional[M]:
        """Single row by primary key or uuid."""
        ident = classify_identifier(identifier)
        if isinstance(ident, ByExternalId) and self.model.get_uuid_key_name():
            return self.where_uuid(ident.value).first()
        return self.where_key(ident.value).first()

    def find_or_fail(self, identifier: Any) -> M:
        found = self.find(identifier)
        if found is None:
            raise ResourceNotFoundError(self.model.__name__, identifier)
        return found

    def find_by_uuid(self, value: str) -> Optional[M]:
        return self.where_uuid(value).first()

    def destroy_by_uuid(self, values: Any) -> int:
        return self.where_uuid(values).delete()

    def delete(self) -> int:
        """Delete every matching row through the session.

        Rows are loaded and deleted one by one so ORM delete events fire.
        Soft-deleting models get `deleted_at` stamped instead. The session is
        flushed but not committed.
        """
        rows = self.all()
        for row in rows:
            if self.soft_deletes:
                row.deleted_at = utcnow()
            else:
                self.session.delete(row)
        if rows:
            self.session.flush()
        logger.debug("Deleted %d %s row(s)", len(rows), self.model.__name__)
        return len(rows)
