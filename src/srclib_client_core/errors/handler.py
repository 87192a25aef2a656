"""Error handling utilities for HTTP responses."""

import httpx

from srclib_client_core.errors.exceptions import (
    APIError,
    BadRequestError,
    ClientError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
)

_EXCEPTION_MAP: dict[int, type[APIError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
}


def raise_for_status(response: httpx.Response) -> None:
    """Raise appropriate exception for HTTP error responses.

    Args:
        response: HTTP response object. Its body must already be read.

    Raises:
        APIError subclass based on status code
    """
    if response.is_success:
        return

    status_code = response.status_code

    if status_code in _EXCEPTION_MAP:
        exc_class = _EXCEPTION_MAP[status_code]
    elif 400 <= status_code < 500:
        exc_class = ClientError
    elif 500 <= status_code < 600:
        exc_class = ServerError
    else:
        exc_class = APIError

    response_text = response.text[:200]
    message = f"HTTP {status_code}: {response_text}" if response_text else f"HTTP {status_code}"

    raise exc_class(message, status_code=status_code, response=response)
