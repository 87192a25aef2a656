"""Resolution of the API endpoint URL."""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

from srclib_client_core.exceptions import EndpointError

if TYPE_CHECKING:
    from srclib_client_core.config import ClientConfig

logger = logging.getLogger(__name__)

ENDPOINT_ENV_VAR = "SRC_ENDPOINT"


@dataclass(frozen=True)
class Endpoint:
    """Base URL of the API.

    ``str(endpoint)`` is the URL exactly as configured. httpx normalizes URLs
    (default ports dropped, host lowercased), so the parsed ``url`` is only
    used for sending requests. The configured string is what keys the
    credential store.

    Attributes:
        raw: The URL string as configured.
        url: The parsed URL.
    """

    raw: str
    url: httpx.URL = field(compare=False, repr=False)

    @classmethod
    def parse(cls, raw: str, *, env_var_name: str | None = None) -> "Endpoint":
        """Validate ``raw`` as an absolute http(s) URL with a host.

        Raises:
            EndpointError: If ``raw`` cannot be used as an endpoint.
        """
        source = env_var_name or "endpoint"
        try:
            url = httpx.URL(raw)
        except httpx.InvalidURL as e:
            raise EndpointError(f"Parsing {source} URL string {raw!r}: {e}", env_var_name=env_var_name) from e

        if url.scheme not in ("http", "https") or not url.host:
            raise EndpointError(
                f"Parsing {source} URL string {raw!r}: expected an absolute http or https URL",
                env_var_name=env_var_name,
            )
        return cls(raw=raw, url=url)

    def __str__(self) -> str:
        return self.raw


DEFAULT_ENDPOINT = Endpoint.parse("https://sourcegraph.com/api/")


def resolve_endpoint(config: "ClientConfig") -> Endpoint:
    """Return the base URL of the API.

    ``SRC_ENDPOINT`` overrides the default when set. The override must be an
    absolute http(s) URL with a host, and its string form is kept as given.

    Raises:
        EndpointError: If the override cannot be used as an endpoint.
    """
    url_str = config.get(ENDPOINT_ENV_VAR)
    if not url_str:
        return DEFAULT_ENDPOINT

    endpoint = Endpoint.parse(url_str, env_var_name=ENDPOINT_ENV_VAR)
    logger.debug(f"Using endpoint {endpoint} from {ENDPOINT_ENV_VAR}")
    return endpoint
