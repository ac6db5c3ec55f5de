"""SQLAlchemy models package.

All ORM classes must be registered deterministically so mapper configuration
cannot fail at runtime depending on import order.
"""

# Import all model modules to register mapped classes in SQLAlchemy's registry.

from restful_api.models import (  # noqa: F401
    author,
    post,
    request_log,
)
