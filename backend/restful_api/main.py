"""FastAPI application.

- Uniform resource routes under /v1 for every registered RestfulModel
- Request-id propagation and structured access logs
- Resource-layer errors mapped to 400/404/422; DB outages to 503
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from restful_api.api.v1.router import router as v1_router
from restful_api.core.env import load_env_if_present
from restful_api.core.errors import ImmutableAttributeError, ResourceNotFoundError, ResourceValidationError
import restful_api.models as _models  # noqa: F401  (register all ORM models deterministically)


logger = logging.getLogger("restful_api")
logger.setLevel(logging.INFO)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ResourceValidationError)
    async def _validation_error(request: Request, exc: ResourceValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"message": str(exc), "errors": exc.errors})

    @app.exception_handler(ImmutableAttributeError)
    async def _immutable_error(request: Request, exc: ImmutableAttributeError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"message": str(exc), "errors": {name: ["This attribute is immutable."] for name in exc.attributes}},
        )

    @app.exception_handler(ResourceNotFoundError)
    async def _not_found(request: Request, exc: ResourceNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"message": f"{exc.resource} not found."})


def create_app() -> FastAPI:
    load_env_if_present()
    app = FastAPI(
        title="restful-models API",
        version="1.0.0",
        openapi_url="/openapi.json",
        description="Resource models addressed by uuid, with uniform create, update and delete semantics.",
    )

    _register_error_handlers(app)
    app.include_router(v1_router, prefix="/v1")

    @app.middleware("http")
    async def request_id_and_access_log(request: Request, call_next: Callable):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        start = time.time()
        try:
            response = await call_next(request)
        except OperationalError:
            logger.warning("Database unavailable", extra={"request_id": request_id})
            return JSONResponse(
                status_code=503,
                content={"detail": "Service temporarily unavailable."},
                headers={"x-request-id": request_id},
            )
        except Exception:  # noqa: BLE001
            logger.exception("Unhandled error", extra={"request_id": request_id})
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal error."},
                headers={"x-request-id": request_id},
            )

        duration_ms = int((time.time() - start) * 1000)
        response.headers["x-request-id"] = request_id

        logger.info(
            json.dumps(
                {
                    "event": "access",
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": getattr(response, "status_code", None),
                    "duration_ms": duration_ms,
                }
            )
        )
        return response

    return app


app = create_app()
