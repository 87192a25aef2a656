"""Client configuration snapshot.

All environment lookups made while building a client go through a
:class:`ClientConfig`. The live process environment is read exactly once, in
:meth:`ClientConfig.from_environ`; resolvers only ever see the snapshot. Tests
build a config directly with whatever environment they need.

Environment variables:
    SRC_ENDPOINT: Base URL of the API (default ``https://sourcegraph.com/api/``).
    SRC_UID / SRC_KEY: User ID and API key; both must be set to take effect.
    SRCLIB_TICKET: Signed perm grant ticket, without the ``Sourcegraph-Ticket`` prefix.
    SRC_AUTH_FILE: Location of the credential store (default ``~/.src-auth``).
    SRCLIB_CACHE_DIR: HTTP cache directory (default ``/tmp/srclib-cache``).

Example:
    ```python
    from srclib_client_core.config import ClientConfig

    # Snapshot the process environment (and .env, if present)
    config = ClientConfig.from_environ()

    # Fully explicit, for tests
    config = ClientConfig(environ={"SRC_ENDPOINT": "http://localhost:3080/api/"})
    ```
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Literal

import httpx
from dotenv import dotenv_values, find_dotenv

from srclib_client_core.auth.store import DEFAULT_STORE_PATH, CredentialSource, CredentialStore
from srclib_client_core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

AUTH_FILE_ENV_VAR = "SRC_AUTH_FILE"
CACHE_DIR_ENV_VAR = "SRCLIB_CACHE_DIR"

DEFAULT_CACHE_DIR = "/tmp/srclib-cache"

CacheErrorPolicy = Literal["bypass", "raise"]
CACHE_ERROR_POLICIES: frozenset[str] = frozenset(["bypass", "raise"])


def _default_store() -> CredentialStore:
    return CredentialStore(DEFAULT_STORE_PATH)


@dataclass(frozen=True)
class ClientConfig:
    """Everything the resolution pipeline needs, captured up front.

    Attributes:
        environ: Snapshot of environment variables.
        store: Credential store consulted when no ``SRC_UID``/``SRC_KEY``
            override is present.
        cache_dir: Directory of the on-disk HTTP cache.
        on_cache_error: What to do when the cache directory is unusable:
            ``"bypass"`` logs a warning and builds an uncached client,
            ``"raise"`` propagates :class:`~srclib_client_core.exceptions.CacheError`.
        base_transport: Network transport at the bottom of the chain.
            ``None`` means a fresh ``httpx.HTTPTransport``.
    """

    environ: Mapping[str, str] = field(default_factory=dict)
    store: CredentialSource = field(default_factory=_default_store)
    cache_dir: str | Path = DEFAULT_CACHE_DIR
    on_cache_error: CacheErrorPolicy = "bypass"
    base_transport: httpx.BaseTransport | None = None

    def __post_init__(self) -> None:
        if self.on_cache_error not in CACHE_ERROR_POLICIES:
            raise ConfigurationError(
                f"on_cache_error must be one of {sorted(CACHE_ERROR_POLICIES)}, got {self.on_cache_error!r}"
            )
        # Freeze the snapshot so later os.environ changes cannot leak in
        object.__setattr__(self, "environ", MappingProxyType(dict(self.environ)))

    def get(self, name: str) -> str:
        """Return an environment value, treating unset as the empty string."""
        return self.environ.get(name, "")

    @classmethod
    def from_environ(
        cls,
        *,
        dotenv_path: str | None = None,
        load_dotenv: bool = True,
        **overrides,
    ) -> "ClientConfig":
        """Build a config from the current process environment.

        Args:
            dotenv_path: Path to a .env file. If None, searches from the
                current directory upwards.
            load_dotenv: Whether to merge .env values. Process environment
                variables always take precedence over .env values.
            **overrides: Explicit field values (``store``, ``cache_dir``,
                ``on_cache_error``, ``base_transport``) that win over the
                environment.

        Returns:
            A frozen configuration snapshot.
        """
        environ: dict[str, str] = {}
        if load_dotenv:
            environ.update(_read_dotenv(dotenv_path))
        environ.update(os.environ)

        if "store" not in overrides:
            overrides["store"] = CredentialStore(environ.get(AUTH_FILE_ENV_VAR) or DEFAULT_STORE_PATH)
        if "cache_dir" not in overrides:
            overrides["cache_dir"] = environ.get(CACHE_DIR_ENV_VAR) or DEFAULT_CACHE_DIR

        return cls(environ=environ, **overrides)


def _read_dotenv(dotenv_path: str | None) -> dict[str, str]:
    """Read .env values without touching os.environ."""
    try:
        path = dotenv_path or find_dotenv(usecwd=True)
        if not path:
            return {}
        values = {key: value for key, value in dotenv_values(path).items() if value is not None}
        logger.debug(f"Loaded {len(values)} value(s) from .env file {path}")
        return values
    except Exception as e:
        logger.warning(f"Failed to load .env file: {e}")
        # Don't fail - continue without .env
        return {}
