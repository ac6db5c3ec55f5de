"""API v1 root router."""

from __future__ import annotations

from fastapi import APIRouter

from restful_api.api.resources import build_resource_router
from restful_api.models.author import Author
from restful_api.models.config import ResourceRegistry
from restful_api.models.post import Post
from restful_api.models.request_log import RequestLog


def build_registry() -> ResourceRegistry:
    registry = ResourceRegistry()
    registry.register(Author)
    registry.register(Post)
    registry.register(RequestLog)
    return registry


REGISTRY = build_registry()

router = APIRouter()
for _config in REGISTRY:
    router.include_router(build_resource_router(_config), prefix=f"/{_config.path}", tags=[_config.path])
