"""Credential handling for punchclock.

- :class:`TokenStore` -- the persisted bearer token; every change empties
  the response cache through its listeners.
- :class:`Session` -- login, bootstrap and logout flows built on the
  request executor.

Typical usage::

    from punchclock.auth import Session

    session = Session(executor)
    user = await session.login("123456")
"""

from punchclock.auth.credential_store import CredentialEntry, TokenStore
from punchclock.auth.session import Session

__all__ = ["CredentialEntry", "Session", "TokenStore"]
