"""srclib client core - endpoint, credential and transport setup for the src API client.

This library builds ready-to-use API clients:
- Endpoint resolution with an environment override
- Credential resolution (environment override, then the stored credential file)
- Perm grant ticket support
- A composed transport stack: disk cache, ticket auth, basic auth

Example:
    ```python
    from srclib_client_core import new_client_with_stored_auth_if_present
    from srclib_client_core.exceptions import ConfigurationError

    try:
        client = new_client_with_stored_auth_if_present()
    except ConfigurationError as e:
        sys.exit(f"src: {e}")

    response = client.get("repos")
    ```
"""

from srclib_client_core.client import APIClient, new_client, new_client_with_stored_auth_if_present
from srclib_client_core.config import ClientConfig
from srclib_client_core.endpoint import Endpoint
from srclib_client_core.exceptions import CacheError, ConfigurationError, EndpointError

__version__ = "0.1.0"

__all__ = [
    "APIClient",
    "CacheError",
    "ClientConfig",
    "ConfigurationError",
    "Endpoint",
    "EndpointError",
    "__version__",
    "new_client",
    "new_client_with_stored_auth_if_present",
]
