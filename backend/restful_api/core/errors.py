"""Errors raised by the resource layer.

None of these wrap persistence failures: SQLAlchemy errors propagate to the
caller unchanged.
"""

from __future__ import annotations

from typing import Iterable, Mapping


class RestfulError(RuntimeError):
    """Base error for the resource layer."""


class ResourceNotFoundError(RestfulError):
    """Raised by `find_or_fail` style lookups when no row matches."""

    def __init__(self, resource: str, identifier: object) -> None:
        super().__init__(f"{resource} not found: {identifier!r}")
        self.resource = resource
        self.identifier = identifier


class ResourceValidationError(RestfulError, ValueError):
    """Raised when a request payload fails a model's validation rules."""

    def __init__(self, errors: Mapping[str, list[str]]) -> None:
        super().__init__("The given data was invalid.")
        self.errors: dict[str, list[str]] = {k: list(v) for k, v in errors.items()}


class ImmutableAttributeError(RestfulError):
    """Raised when an API update touches attributes the model declares immutable."""

    def __init__(self, resource: str, attributes: Iterable[str]) -> None:
        self.resource = resource
        self.attributes = sorted(attributes)
        super().__init__(
            f"{resource} attribute(s) cannot be updated: " + ", ".join(self.attributes)
        )
