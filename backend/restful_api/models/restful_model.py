"""RestfulModel: declarative base for API resources.

Every resource carries two identifiers:
- an integer autoincrement primary key, used for joins and ordering and never
  exposed as the canonical reference;
- an optional uuid column (`uuid_key`), the identifier API consumers address
  the resource by. Append-only, high-volume tables that are never addressed
  individually set `uuid_key = None`.

Per-model configuration (`uuid_key`, `immutable_attributes`, `local_with`,
`hidden_attributes`, `transformer`) is class-level and read-only after class
definition. The REST layer reads it through `ResourceConfig`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Optional, Union

from sqlalchemy import String, event, inspect
from sqlalchemy.orm import Mapped, Session, mapped_column

from restful_api.core.base import Base
from restful_api.core.identifiers import generate_uuid, split_identifiers
from restful_api.models.query import RestfulQuery
from restful_api.transformers.base import BaseTransformer

if TYPE_CHECKING:  # pragma: no cover
    from sqlalchemy.orm import Mapper


logger = logging.getLogger(__name__)

RuleSet = dict[str, Union[str, list[str]]]


def uuid_column(**kwargs: Any) -> Mapped[str]:
    """Mapped column for a resource's external identifier (canonical string form)."""
    kwargs.setdefault("nullable", False)
    kwargs.setdefault("unique", True)
    return mapped_column(String(36), **kwargs)


class RestfulModel(Base):
    """Base class for resource models exposed through the REST layer."""

    __abstract__ = True

    #: Name of the uuid attribute returned to API consumers, or None.
    uuid_key: ClassVar[Optional[str]] = "uuid"

    #: Attributes (in addition to the primary and uuid keys) API update requests
    #: may not change. Application code may still assign them directly.
    immutable_attributes: ClassVar[tuple[str, ...]] = ("created_at", "deleted_at")

    #: Relations eager loaded only for direct single-resource requests.
    local_with: ClassVar[tuple[str, ...]] = ()

    #: Attributes never included in transformed output.
    hidden_attributes: ClassVar[tuple[str, ...]] = ()

    #: Transformer class overriding BaseTransformer for this model.
    transformer: ClassVar[Optional[type[BaseTransformer]]] = None

    # ------------------------------------------------------------------
    # Validation hooks
    # ------------------------------------------------------------------

    @classmethod
    def validation_rules(cls) -> RuleSet:
        """Validation rules applied when creating the resource."""
        return {}

    @classmethod
    def validation_rules_updating(cls) -> RuleSet:
        """Validation rules applied on update. Same as create unless overridden."""
        return cls.validation_rules()

    @classmethod
    def validation_messages(cls) -> dict[str, str]:
        """Custom messages keyed by `field.rule` or `rule`."""
        return {}

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    @classmethod
    def get_key_name(cls) -> str:
        mapper: Mapper[Any] = inspect(cls)
        pk = mapper.primary_key
        if len(pk) != 1:
            raise TypeError(f"{cls.__name__} must have a single-column primary key.")
        return mapper.get_property_by_column(pk[0]).key

    @classmethod
    def get_uuid_key_name(cls) -> Optional[str]:
        return cls.uuid_key

    def get_key(self) -> Any:
        return getattr(self, self.get_key_name())

    def get_uuid_key(self) -> Optional[str]:
        key = self.get_uuid_key_name()
        return getattr(self, key) if key else None

    def ensure_uuid(self) -> Optional[str]:
        """Assign a fresh uuid unless one is already set. Returns the uuid."""
        key = self.get_uuid_key_name()
        if not key:
            return None
        if self.__dict__.get(key) is None:
            value = generate_uuid()
            setattr(self, key, value)
            logger.debug("Generated %s.%s=%s", type(self).__name__, key, value)
        return self.__dict__[key]

    @classmethod
    def get_immutable_attributes(cls) -> frozenset[str]:
        names = set(cls.immutable_attributes)
        names.add(cls.get_key_name())
        if cls.get_uuid_key_name():
            names.add(cls.get_uuid_key_name())
        return frozenset(names)

    @classmethod
    def immutable_attributes_in(cls, payload: Mapping[str, Any]) -> list[str]:
        """Keys of `payload` that an API update is not allowed to change."""
        immutable = cls.get_immutable_attributes()
        return sorted(k for k in payload if k in immutable)

    # ------------------------------------------------------------------
    # Transformers and attribute ordering
    # ------------------------------------------------------------------

    @classmethod
    def get_transformer(cls) -> BaseTransformer:
        """This model's transformer, or a generic one if none is configured."""
        return BaseTransformer() if cls.transformer is None else cls.transformer()

    def get_attributes(self) -> dict[str, Any]:
        """Loaded column values in their current in-memory order."""
        columns = {attr.key for attr in inspect(type(self)).column_attrs}
        return {k: v for k, v in self.__dict__.items() if k in columns}

    def order_attributes_uuid_first(self) -> None:
        """Move the uuid attribute to the head of the in-memory attribute order.

        New rows get their generated uuid appended last, so a freshly created
        resource would otherwise serialize with the uuid at the end. Only the
        instance dict is reordered; no attribute history is recorded.
        """
        key = self.get_uuid_key_name()
        if not key:
            return
        value = getattr(self, key)
        attrs = self.__dict__
        rest = [(k, v) for k, v in attrs.items() if k != key]
        attrs.clear()
        attrs[key] = value
        attrs.update(rest)

    # ------------------------------------------------------------------
    # Query builder and identifier-aware deletion
    # ------------------------------------------------------------------

    @classmethod
    def query(cls, session: Session) -> RestfulQuery[Any]:
        return RestfulQuery(cls, session)

    @classmethod
    def destroy(cls, session: Session, ids: Any) -> int:
        """Delete by primary key(s), uuid(s), or a mix of both.

        Each element is classified independently. Models without a uuid key
        treat every element as a primary key. Returns the number of rows
        deleted; unknown identifiers are not an error.
        """
        internal, external = split_identifiers(ids)
        if not cls.get_uuid_key_name():
            internal, external = internal + external, []

        deleted = 0
        if internal:
            deleted += cls.query(session).where_key(internal).delete()
        if external:
            deleted += cls.destroy_by_uuid(session, external)
        return deleted

    @classmethod
    def destroy_by_uuid(cls, session: Session, uuids: Any) -> int:
        return cls.query(session).where_uuid(uuids).delete()

    def __repr__(self) -> str:
        key = self.get_key_name()
        return f"<{type(self).__name__}({key}={self.__dict__.get(key)!r})>"


@event.listens_for(RestfulModel, "before_insert", propagate=True)
def _restful_model_assign_uuid(mapper, connection, target: RestfulModel) -> None:
    """Populate a missing uuid on first persistence. Never fires on update."""
    target.ensure_uuid()
