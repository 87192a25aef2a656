"""Read-only access to the user's persisted credential store.

The store is a JSON object keyed by endpoint URL string. Each value holds the
user ID and API key for that endpoint:

    ```json
    {
        "https://sourcegraph.com/api/": {"UID": 7, "Key": "abc123"}
    }
    ```

The file is written by the login flow, which lives outside this package.
Reading it never creates or modifies it.

Example:
    ```python
    from srclib_client_core.auth.store import CredentialStore

    store = CredentialStore("~/.src-auth")
    credentials = store.load()
    credential = credentials.get("https://sourcegraph.com/api/")
    ```
"""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from srclib_client_core.auth.exceptions import CredentialStoreError
from srclib_client_core.auth.models import Credential

if TYPE_CHECKING:
    from srclib_client_core.config import ClientConfig

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = "~/.src-auth"


class CredentialSource(Protocol):
    """Anything that can load the endpoint-to-credential mapping."""

    def load(self) -> Mapping[str, Credential]: ...


class CredentialStore:
    """Credential store backed by a JSON file.

    Args:
        path: Location of the store file. Supports ``~`` and ``$VAR``
            expansion. Defaults to ``~/.src-auth``.
    """

    def __init__(self, path: str | Path = DEFAULT_STORE_PATH) -> None:
        self._path = Path(os.path.expanduser(os.path.expandvars(str(path))))

    @property
    def path(self) -> Path:
        """The filesystem path to the store file."""
        return self._path

    def load(self) -> dict[str, Credential]:
        """Load all stored credentials.

        Returns:
            Mapping from endpoint URL string to Credential. Empty if the
            store file does not exist.

        Raises:
            CredentialStoreError: If the file exists but cannot be read,
                is not valid JSON, or contains a malformed entry.
        """
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"No credential store at {self._path}")
            return {}
        except OSError as e:
            raise CredentialStoreError(f"Reading credential store {self._path}: {e}", path=self._path) from e

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise CredentialStoreError(f"Parsing credential store {self._path}: {e}", path=self._path) from e

        if not isinstance(data, dict):
            raise CredentialStoreError(
                f"Credential store {self._path} must contain a JSON object, got {type(data).__name__}",
                path=self._path,
            )

        credentials = {}
        for endpoint, entry in data.items():
            if entry is None:
                continue
            credentials[endpoint] = self._parse_entry(endpoint, entry)

        logger.debug(f"Loaded {len(credentials)} credential(s) from {self._path}")
        return credentials

    def _parse_entry(self, endpoint: str, entry: object) -> Credential:
        """Convert one JSON entry into a Credential."""
        if not isinstance(entry, dict):
            raise CredentialStoreError(
                f"Credential store {self._path}: entry for {endpoint} must be an object", path=self._path
            )

        uid = entry.get("UID")
        key = entry.get("Key")
        # bool is an int subclass; reject it explicitly
        if not isinstance(uid, int) or isinstance(uid, bool):
            raise CredentialStoreError(
                f"Credential store {self._path}: entry for {endpoint} has no integer UID", path=self._path
            )
        if not isinstance(key, str):
            raise CredentialStoreError(
                f"Credential store {self._path}: entry for {endpoint} has no string Key", path=self._path
            )
        return Credential(uid=uid, key=key)


def read_credential_store(config: "ClientConfig") -> Mapping[str, Credential]:
    """Load the credential mapping from the store configured in ``config``.

    Raises:
        CredentialStoreError: Propagated unchanged from the store.
    """
    return config.store.load()
