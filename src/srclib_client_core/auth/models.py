"""Credential and ticket value objects."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Credential:
    """A user's API credential for one endpoint.

    The key is excluded from ``repr`` so credentials can appear in log
    messages and tracebacks without leaking the secret.
    """

    uid: int  # Numeric user ID, sent as the basic-auth username
    key: str = field(repr=False)  # Secret API key, sent as the password

    @property
    def username(self) -> str:
        """The basic-auth username (the UID in string form)."""
        return str(self.uid)


@dataclass(frozen=True)
class Ticket:
    """A signed perm grant ticket.

    ``signed`` is the raw ticket string without the ``Sourcegraph-Ticket``
    prefix.
    """

    signed: str = field(repr=False)
