"""Custom exceptions for credential resolution.

Example:
    ```python
    from srclib_client_core.auth.exceptions import CredentialParseError

    try:
        credential = resolve_credential(endpoint, config)
    except CredentialParseError as e:
        print(f"Bad override in {e.env_var_name}: {e}")
    ```
"""

from pathlib import Path

from srclib_client_core.exceptions import ConfigurationError


class CredentialError(ConfigurationError):
    """Base exception for credential-related errors.

    All credential-specific exceptions inherit from this class,
    making it easy to catch any credential-related error.
    """

    pass


class CredentialParseError(CredentialError):
    """Raised when a credential supplied through the environment is malformed.

    An override that was set on purpose but cannot be parsed must not
    silently fall back to "no credential".

    Attributes:
        env_var_name: The environment variable holding the malformed value.
    """

    def __init__(self, message: str, env_var_name: str | None = None):
        """Initialize CredentialParseError.

        Args:
            message: Error message describing the malformed value.
            env_var_name: Optional environment variable name for reference.
        """
        super().__init__(message)
        self.env_var_name = env_var_name


class CredentialStoreError(CredentialError):
    """Raised when the credential store file cannot be read or parsed.

    Attributes:
        path: Location of the store file.
    """

    def __init__(self, message: str, path: str | Path | None = None):
        super().__init__(message)
        self.path = path
