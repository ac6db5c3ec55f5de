from __future__ import annotations

from typing import TYPE_CHECKING, Any

from restful_api.transformers.base import BaseTransformer

if TYPE_CHECKING:  # pragma: no cover
    from restful_api.models.post import Post


EXCERPT_LENGTH = 140


class PostTransformer(BaseTransformer):
    """Posts reference their author by uuid and carry a short excerpt."""

    def transform_attributes(self, model: Post) -> dict[str, Any]:  # type: ignore[override]
        data = super().transform_attributes(model)
        data.pop("author_id", None)
        body = data.get("body") or ""
        if len(body) > EXCERPT_LENGTH:
            body = body[:EXCERPT_LENGTH].rstrip() + "..."
        data["excerpt"] = body
        return data
