"""Credential and ticket resolution for API clients.

Resolution order for the user credential (first match wins):
1. ``SRC_UID`` and ``SRC_KEY`` environment variables, when both are non-empty
2. The credential store entry for the resolved endpoint
3. None (unauthenticated)

The perm grant ticket comes only from ``SRCLIB_TICKET``. It is independent of
the credential: either, both or neither may be present.

Example:
    ```python
    from srclib_client_core.auth import resolve_credential, resolve_ticket
    from srclib_client_core.config import ClientConfig
    from srclib_client_core.endpoint import Endpoint
    from srclib_client_core.endpoint import Endpoint
    from srclib_client_core.endpoint import resolve_endpoint

    config = ClientConfig.from_environ()
    endpoint = resolve_endpoint(config)

    credential = resolve_credential(endpoint, config)  # Credential or None
    ticket = resolve_ticket(config)  # Ticket or None
    ```

Security Considerations:
    - API keys are never logged (masked with ***)
    - Only source information is logged (env var name, store path)
"""

import logging
import re
from typing import TYPE_CHECKING

from srclib_client_core.auth.exceptions import CredentialParseError
from srclib_client_core.auth.models import Credential, Ticket
from srclib_client_core.auth.store import read_credential_store

if TYPE_CHECKING:
    from srclib_client_core.config import ClientConfig
    from srclib_client_core.endpoint import Endpoint

logger = logging.getLogger(__name__)

UID_ENV_VAR = "SRC_UID"
KEY_ENV_VAR = "SRC_KEY"
TICKET_ENV_VAR = "SRCLIB_TICKET"

# ASCII decimal digits only, no underscores or surrounding whitespace
_UID_PATTERN = re.compile(r"[+-]?[0-9]+")


def _mask_credential(credential: Credential | None) -> str:
    """Describe a credential for logging without revealing its key."""
    if credential is None:
        return "None"
    return f"UID {credential.uid} (key ***)"


def resolve_credential(endpoint: "Endpoint | str", config: "ClientConfig") -> Credential | None:
    """Resolve the user credential to authenticate with.

    Args:
        endpoint: The resolved API endpoint. Its string form, exactly as
            configured, is the lookup key in the credential store.
        config: Configuration snapshot holding the environment and store.

    Returns:
        The credential to use, or None when the client should be
        unauthenticated.

    Raises:
        CredentialParseError: If ``SRC_UID`` and ``SRC_KEY`` are both set
            but ``SRC_UID`` is not an integer.
        CredentialStoreError: If the credential store cannot be read.
    """
    uid_str, key = config.get(UID_ENV_VAR), config.get(KEY_ENV_VAR)

    # Priority 1: Environment override pair
    if uid_str and key:
        if not _UID_PATTERN.fullmatch(uid_str):
            raise CredentialParseError(
                f"Parsing {UID_ENV_VAR}: {uid_str!r} is not an integer", env_var_name=UID_ENV_VAR
            )
        credential = Credential(uid=int(uid_str), key=key)
        logger.debug(
            f"Resolved credential from environment variables '{UID_ENV_VAR}'/'{KEY_ENV_VAR}': "
            f"{_mask_credential(credential)}"
        )
        return credential

    # Priority 2: Credential store
    credentials = read_credential_store(config)
    credential = credentials.get(str(endpoint))
    if credential is not None:
        logger.debug(f"Resolved credential from credential store for {endpoint}: {_mask_credential(credential)}")
    else:
        logger.debug(f"No stored credential for {endpoint}")
    return credential


def resolve_ticket(config: "ClientConfig") -> Ticket | None:
    """Return the perm grant ticket from ``SRCLIB_TICKET``, if one is set.

    Only one ticket is supported.
    """
    signed = config.get(TICKET_ENV_VAR)
    if not signed:
        return None
    return Ticket(signed=signed)
