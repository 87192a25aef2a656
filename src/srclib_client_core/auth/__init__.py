"""Authentication components for API clients.

This module provides:
- Credential resolution with environment override and stored fallback
- Read-only access to the persisted credential store
- Perm grant ticket lookup

Example:
    ```python
    from srclib_client_core.auth import resolve_credential

    credential = resolve_credential(endpoint, config)
    if credential is None:
        print("not logged in")
    ```
"""

from srclib_client_core.auth.credentials import resolve_credential, resolve_ticket
from srclib_client_core.auth.exceptions import (
    CredentialError,
    CredentialParseError,
    CredentialStoreError,
)
from srclib_client_core.auth.models import Credential, Ticket
from srclib_client_core.auth.store import CredentialStore, read_credential_store

__all__ = [
    "Credential",
    "CredentialError",
    "CredentialParseError",
    "CredentialStore",
    "CredentialStoreError",
    "Ticket",
    "read_credential_store",
    "resolve_credential",
    "resolve_ticket",
]
