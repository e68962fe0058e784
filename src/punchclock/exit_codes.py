"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to one error category and is referenced by the
corresponding :class:`~punchclock.exceptions.PunchclockError` subclass, so
shell wrappers can tell "offline" from "session expired" from "rejected"
without parsing stderr.

Example::

    $ punchclock request GET /api/auth/me
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- no token stored, or the session expired
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""No credential was available, or the API rejected it (HTTP 401 / 403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""The transfer could not complete (DNS failure, connection refused, offline)."""

EXIT_TIMEOUT = 7
"""The transfer exceeded its per-attempt timeout."""

EXIT_REJECTED = 8
"""The API answered but rejected the request (validation and other 4xx failures)."""
