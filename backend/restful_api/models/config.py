"""Per-resource configuration records.

A ResourceConfig is built once per model at startup and handed to the REST
layer by reference. It is validated against the mapper so a misspelled uuid
key or `local_with` relation fails at startup rather than on first request.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, Optional

from sqlalchemy import inspect

from restful_api.core.errors import RestfulError
from restful_api.models.restful_model import RestfulModel
from restful_api.transformers.base import BaseTransformer


def _default_path(model: type[RestfulModel]) -> str:
    words = re.sub(r"(?<!^)(?=[A-Z])", "-", model.__name__).lower()
    return words if words.endswith("s") else f"{words}s"


@dataclass(frozen=True)
class ResourceConfig:
    model: type[RestfulModel]
    path: str
    key_name: str
    uuid_key: Optional[str]
    immutable_attributes: frozenset[str]
    local_with: tuple[str, ...]
    transformer: Optional[type[BaseTransformer]]

    @classmethod
    def for_model(cls, model: type[RestfulModel], path: Optional[str] = None) -> ResourceConfig:
        mapper = inspect(model)
        uuid_key = model.get_uuid_key_name()
        if uuid_key and uuid_key not in mapper.column_attrs:
            raise RestfulError(f"{model.__name__}.uuid_key={uuid_key!r} is not a mapped column.")
        for name in model.local_with:
            if name not in mapper.relationships:
                raise RestfulError(f"{model.__name__}.local_with names unknown relation {name!r}.")
        return cls(
            model=model,
            path=path or _default_path(model),
            key_name=model.get_key_name(),
            uuid_key=uuid_key,
            immutable_attributes=model.get_immutable_attributes(),
            local_with=tuple(model.local_with),
            transformer=model.transformer,
        )

    @property
    def name(self) -> str:
        return self.model.__name__

    def get_transformer(self) -> BaseTransformer:
        return self.model.get_transformer()


@dataclass
class ResourceRegistry:
    """Resource configs for one application, keyed by URL path."""

    _configs: dict[str, ResourceConfig] = field(default_factory=dict)

    def register(self, model: type[RestfulModel], path: Optional[str] = None) -> ResourceConfig:
        config = ResourceConfig.for_model(model, path)
        if config.path in self._configs:
            raise RestfulError(f"Resource path {config.path!r} is already registered.")
        self._configs[config.path] = config
        return config

    def get(self, path: str) -> ResourceConfig:
        return self._configs[path]

    def __iter__(self) -> Iterator[ResourceConfig]:
        return iter(self._configs.values())

    def __len__(self) -> int:
        return len(self._configs)
