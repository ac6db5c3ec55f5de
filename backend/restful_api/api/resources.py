"""Generic REST endpoints for a RestfulModel.

`build_resource_router(config)` returns an APIRouter with list, show, create,
replace, update and delete routes driven entirely by the ResourceConfig and
the model's validation and transformer hooks. Resources are addressed by uuid
or primary key.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.orm import Session

from restful_api.api.deps import get_db_session
from restful_api.core.env import env_int
from restful_api.core.errors import ImmutableAttributeError, ResourceNotFoundError, ResourceValidationError
from restful_api.core.identifiers import is_uuid
from restful_api.models.config import ResourceConfig
from restful_api.models.restful_model import RestfulModel
from restful_api.validation import validate_payload


logger = logging.getLogger(__name__)

PAGE_LIMIT_ENV = "RESTFUL_API_PAGE_LIMIT"
MAX_PAGE_LIMIT = 100


def default_page_limit() -> int:
    return max(1, min(env_int(PAGE_LIMIT_ENV, 50), MAX_PAGE_LIMIT))


def _creation_data(config: ResourceConfig, payload: dict[str, Any]) -> dict[str, Any]:
    model = config.model
    data = validate_payload(payload, model.validation_rules(), model.validation_messages())
    uuid_key = config.uuid_key
    if uuid_key and payload.get(uuid_key) is not None:
        if not is_uuid(payload[uuid_key]):
            raise ResourceValidationError({uuid_key: [f"The {uuid_key.replace('_', ' ')} must be a valid UUID."]})
        data[uuid_key] = str(payload[uuid_key]).lower()
    return data


def _update_data(config: ResourceConfig, payload: dict[str, Any], *, replacing: bool) -> dict[str, Any]:
    model = config.model
    immutable = model.immutable_attributes_in(payload)
    if immutable:
        raise ImmutableAttributeError(config.name, immutable)
    if replacing:
        # Immutable fields were set at creation; a replacement cannot supply them.
        rules = {k: v for k, v in model.validation_rules().items() if k not in config.immutable_attributes}
    else:
        rules = model.validation_rules_updating()
    return validate_payload(payload, rules, model.validation_messages())


def _apply(resource: RestfulModel, data: dict[str, Any]) -> None:
    for key, value in data.items():
        setattr(resource, key, value)


def build_resource_router(config: ResourceConfig) -> APIRouter:
    router = APIRouter()
    model = config.model
    key_column = getattr(model, config.key_name)

    def _find(db: Session, identifier: str, *, local: bool = False) -> RestfulModel:
        query = model.query(db)
        if local:
            query = query.with_local()
        return query.find_or_fail(identifier)

    @router.get("/", summary=f"List {config.name} resources")
    def list_resources(
        limit: Optional[int] = Query(None, ge=1, le=MAX_PAGE_LIMIT),
        offset: int = Query(0, ge=0),
        db: Session = Depends(get_db_session),
    ) -> dict[str, Any]:
        query = model.query(db)
        items = query.order_by(key_column).limit(limit or default_page_limit()).offset(offset).all()
        return {"total": query.count(), "items": config.get_transformer().transform_collection(items)}

    @router.get("/{identifier}", summary=f"Get {config.name}")
    def get_resource(identifier: str, db: Session = Depends(get_db_session)) -> dict[str, Any]:
        resource = _find(db, identifier, local=True)
        return config.get_transformer().transform(resource)

    @router.post("/", status_code=status.HTTP_201_CREATED, summary=f"Create {config.name}")
    def create_resource(
        payload: dict[str, Any] = Body(...),
        db: Session = Depends(get_db_session),
    ) -> dict[str, Any]:
        resource = model(**_creation_data(config, payload))
        db.add(resource)
        db.commit()
        db.refresh(resource)
        resource.order_attributes_uuid_first()
        logger.info("Created %s %s", config.name, resource.get_uuid_key() or resource.get_key())
        return config.get_transformer().transform(resource)

    @router.put("/{identifier}", summary=f"Replace {config.name}")
    def replace_resource(
        identifier: str,
        payload: dict[str, Any] = Body(...),
        db: Session = Depends(get_db_session),
    ) -> dict[str, Any]:
        data = _update_data(config, payload, replacing=True)
        resource = _find(db, identifier)
        _apply(resource, data)
        db.commit()
        db.refresh(resource)
        return config.get_transformer().transform(resource)

    @router.patch("/{identifier}", summary=f"Update {config.name}")
    def update_resource(
        identifier: str,
        payload: dict[str, Any] = Body(...),
        db: Session = Depends(get_db_session),
    ) -> dict[str, Any]:
        data = _update_data(config, payload, replacing=False)
        resource = _find(db, identifier)
        _apply(resource, data)
        db.commit()
        db.refresh(resource)
        return config.get_transformer().transform(resource)

    @router.delete("/{identifier}", status_code=status.HTTP_204_NO_CONTENT, summary=f"Delete {config.name}")
    def delete_resource(identifier: str, db: Session = Depends(get_db_session)) -> Response:
        deleted = model.destroy(db, identifier)
        if not deleted:
            raise ResourceNotFoundError(config.name, identifier)
        db.commit()
        logger.info("Deleted %s %s", config.name, identifier)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
