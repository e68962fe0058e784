"""Response envelope decoding and display.

The API answers with a JSON envelope::

    {"ok": true,  "data": ...}
    {"ok": false, "error": {"code": "...", "message": "...", "details": ...}}

:func:`parse_body` decodes the body, treating anything that is not JSON as
an empty object; :func:`is_failure` classifies the outcome and
:func:`unwrap` strips the envelope.  :func:`format_api_payload` bridges the
decoded payload to the output system for the CLI.

See Also:
    :mod:`punchclock.output` -- the output manager that renders data.
"""

from __future__ import annotations

from typing import Any

import httpx

from punchclock.output import get_output


def parse_body(response: httpx.Response) -> Any:
    """Decode *response* as JSON, or return ``{}`` when it is empty or not JSON."""
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {}


def is_failure(response: httpx.Response, payload: Any) -> bool:
    """Return ``True`` for a non-2xx status or an explicit ``"ok": false``."""
    if not response.is_success:
        return True
    return isinstance(payload, dict) and payload.get("ok") is False


def unwrap(payload: Any) -> Any:
    """Return the ``data`` field of the envelope, or ``None`` if absent."""
    if isinstance(payload, dict):
        return payload.get("data")
    return None


def format_api_payload(data: Any) -> None:
    """Render a decoded payload on stdout via the global output system.

    ``None`` (an envelope without ``data``) produces no output.
    """
    if data is None:
        return
    get_output().format_response(data)
