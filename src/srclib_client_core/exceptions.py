"""Configuration errors raised while building an API client.

Every failure that prevents a client from being constructed derives from
:class:`ConfigurationError`, so a command-line harness can catch one type,
print the message and exit.

Example:
    ```python
    from srclib_client_core import new_client_with_stored_auth_if_present
    from srclib_client_core.exceptions import ConfigurationError

    try:
        client = new_client_with_stored_auth_if_present()
    except ConfigurationError as e:
        sys.exit(f"src: {e}")
    ```
"""

from pathlib import Path


class ConfigurationError(Exception):
    """Base exception for unusable client configuration.

    These errors are never recovered from inside this package: no valid
    client can be built until the configuration is fixed.
    """

    pass


class EndpointError(ConfigurationError):
    """Raised when the endpoint override is not a usable URL.

    Attributes:
        env_var_name: The environment variable holding the bad value.
    """

    def __init__(self, message: str, env_var_name: str | None = None):
        super().__init__(message)
        self.env_var_name = env_var_name


class CacheError(ConfigurationError):
    """Raised when the on-disk HTTP cache cannot be created or opened.

    Attributes:
        cache_dir: The directory that could not be used.
    """

    def __init__(self, message: str, cache_dir: str | Path | None = None):
        super().__init__(message)
        self.cache_dir = cache_dir
