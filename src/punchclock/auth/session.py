"""Login, bootstrap and logout flows.

A :class:`Session` drives the token store through the request executor:

* :meth:`Session.login` exchanges a six-digit passcode for a token.
* :meth:`Session.bootstrap` validates a stored token against
  ``/api/auth/me`` at startup and forgets it if the API rejects it.
* :meth:`Session.logout` forgets the token.

Every token change empties the response cache (see
:class:`~punchclock.auth.credential_store.TokenStore`).
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Optional

from punchclock.exceptions import ApiError, AuthError, InvalidUsageError

if TYPE_CHECKING:
    from punchclock.client.executor import RequestExecutor

LOGIN_PATH = "/api/auth/login"
ME_PATH = "/api/auth/me"

_PASSCODE_RE = re.compile(r"^\d{6}$")


class Session:
    """Authentication flows on top of a :class:`RequestExecutor`.

    Example::

        session = Session(executor)
        user = await session.login("123456")
        assert executor.get_token()
    """

    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor

    @property
    def is_authenticated(self) -> bool:
        return bool(self._executor.get_token())

    async def login(self, passcode: str) -> Optional[dict[str, Any]]:
        """Exchange *passcode* for a token and store it.

        Returns:
            The ``user`` object from the login response.

        Raises:
            InvalidUsageError: The passcode is not exactly six digits.
            AuthError: The API succeeded but returned no token.
            ApiError: The login request itself failed.
        """
        code = str(passcode or "").strip()
        if not _PASSCODE_RE.match(code):
            raise InvalidUsageError("PassCode must be exactly 6 digits.")

        data = await self._executor.post(
            LOGIN_PATH, body={"passCode": code}, requires_auth=False,
        )
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise AuthError("Login succeeded but the response carried no token")

        self._executor.set_token(str(token))
        return data.get("user")

    async def bootstrap(self) -> Optional[dict[str, Any]]:
        """Return the current user if a stored token is still accepted.

        Returns ``None`` without sending anything when no token is stored.

        Raises:
            ApiError: ``/api/auth/me`` failed; the token has been cleared.
        """
        if not self.is_authenticated:
            return None
        try:
            return await self._executor.get(ME_PATH)
        except ApiError:
            self._executor.clear_token()
            raise

    def logout(self) -> None:
        self._executor.clear_token()
