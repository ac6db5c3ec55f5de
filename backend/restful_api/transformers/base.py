"""Response shaping for resource models.

BaseTransformer maps a persisted model to its API representation:
- uuid-keyed models do not expose their integer primary key;
- `hidden_attributes` are dropped;
- loaded relations are included, each shaped by its own model's transformer;
- keys are emitted in snake_case (default) or camelCase (`RESTFUL_API_CASE_TYPE`).
"""

from __future__ import annotations

import enum
import logging
import re
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Final, Iterable, Optional

from sqlalchemy import inspect

from restful_api.core.env import env_str

if TYPE_CHECKING:  # pragma: no cover
    from restful_api.models.restful_model import RestfulModel


CASE_TYPE_ENV: Final[str] = "RESTFUL_API_CASE_TYPE"
CASE_SNAKE: Final[str] = "snake"
CASE_CAMEL: Final[str] = "camel"

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r"_([a-z0-9])")


def camel_case(key: str) -> str:
    return _CAMEL_RE.sub(lambda m: m.group(1).upper(), key)


def _case_type_from_env() -> str:
    """Configured key casing; an unrecognised value falls back to snake_case."""
    value = env_str(CASE_TYPE_ENV, CASE_SNAKE).lower()
    if value not in (CASE_SNAKE, CASE_CAMEL):
        logger.warning("Ignoring %s=%r (expected snake or camel); using snake.", CASE_TYPE_ENV, value)
        return CASE_SNAKE
    return value


def serialize_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (uuid.UUID, Decimal)):
        return str(value)
    return value


class BaseTransformer:
    """Generic transformer used when a model does not configure its own."""

    def __init__(self, case_type: Optional[str] = None, *, max_depth: int = 1) -> None:
        if case_type is None:
            case_type = _case_type_from_env()
        case_type = case_type.lower()
        if case_type not in (CASE_SNAKE, CASE_CAMEL):
            raise ValueError(f"Unsupported case type {case_type!r} (expected snake or camel).")
        self.case_type = case_type
        self.max_depth = max_depth

    def transform(self, model: RestfulModel, *, depth: int = 0) -> dict[str, Any]:
        data = self.transform_attributes(model)
        if depth < self.max_depth:
            data.update(self.transform_relations(model, depth=depth))
        return self.format_keys(data)

    def transform_collection(self, models: Iterable[RestfulModel]) -> list[dict[str, Any]]:
        return [self.transform(m) for m in models]

    def transform_attributes(self, model: RestfulModel) -> dict[str, Any]:
        attributes = model.get_attributes()
        if model.get_uuid_key_name():
            attributes.pop(model.get_key_name(), None)
        for name in model.hidden_attributes:
            attributes.pop(name, None)
        return {k: serialize_value(v) for k, v in attributes.items()}

    def transform_relations(self, model: RestfulModel, *, depth: int = 0) -> dict[str, Any]:
        """Already-loaded relations only; nothing here triggers a lazy load."""
        state = inspect(model)
        out: dict[str, Any] = {}
        for rel in state.mapper.relationships:
            if rel.key in state.unloaded:
                continue
            related = state.attrs[rel.key].loaded_value
            if related is None:
                out[rel.key] = None
            elif isinstance(related, (list, tuple, set)):
                out[rel.key] = [self._transform_related(r, depth) for r in related]
            else:
                out[rel.key] = self._transform_related(related, depth)
        return out

    def _transform_related(self, related: RestfulModel, depth: int) -> dict[str, Any]:
        transformer = related.get_transformer()
        transformer.case_type = self.case_type
        transformer.max_depth = self.max_depth
        return transformer.transform(related, depth=depth + 1)

    def format_keys(self, data: dict[str, Any]) -> dict[str, Any]:
        if self.case_type == CASE_CAMEL:
            return {camel_case(k): v for k, v in data.items()}
        return data
