"""Error handling for API responses."""

from srclib_client_core.errors.exceptions import (
    APIError,
    BadRequestError,
    ClientError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
)
from srclib_client_core.errors.handler import raise_for_status

__all__ = [
    "APIError",
    "BadRequestError",
    "ClientError",
    "ForbiddenError",
    "NotFoundError",
    "ServerError",
    "UnauthorizedError",
    "raise_for_status",
]
