"""HTTP transport for the analytics backend, with status code mapping."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyrevenew._constants import SCHEME, USER_AGENT
from pyrevenew._redact import redact_for_log
from pyrevenew.config import RevenewConfig
from pyrevenew.exceptions import (
    ConflictError,
    DecodeError,
    InvalidUrlError,
    NoResponseError,
    NotFoundError,
    UnauthorizedError,
    UnexpectedStatusError,
)

_logger = logging.getLogger(__name__)

#: Error statuses whose bodies are still decoded and returned as responses.
_DECODED_ERROR_STATUSES: frozenset[int] = frozenset({400, 500})


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Test doubles only need ``post_json``, which returns the HTTP status
    together with the decoded body; :class:`HttpTransport` is the aiohttp
    implementation.
    """

    async def post_json(self, path: str, payload: Mapping[str, Any]) -> tuple[int, dict[str, Any]]:
        ...


def build_url(host: str, port: int, path: str) -> str:
    """Assemble ``http://host:port/path`` or raise :class:`InvalidUrlError`."""
    host = host.strip()
    if not host or any(ch in host for ch in "/?# "):
        raise InvalidUrlError(f"Invalid host {host!r}", endpoint=path)
    if not 0 < port < 65536:
        raise InvalidUrlError(f"Invalid port {port}", endpoint=path)
    if not path.startswith("/"):
        raise InvalidUrlError(f"Path must be absolute: {path!r}", endpoint=path)
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    return f"{SCHEME}://{host}:{port}{path}"


def decode_body(status: int, text: str, path: str) -> dict[str, Any]:
    """Map an HTTP status + body to a decoded JSON object or an error.

    2xx and the 400/500 error statuses carry a JSON body that is decoded
    and returned.  401, 404 and 409 have dedicated errors; everything else
    is an :class:`UnexpectedStatusError`.
    """
    if status == 401:
        raise UnauthorizedError(f"HTTP 401 from {path}", status_code=status, endpoint=path)
    if status == 404:
        raise NotFoundError(f"HTTP 404 from {path}", status_code=status, endpoint=path)
    if status == 409:
        raise ConflictError(f"HTTP 409 from {path}", status_code=status, endpoint=path)
    if not (200 <= status < 300 or status in _DECODED_ERROR_STATUSES):
        raise UnexpectedStatusError(
            f"HTTP {status} from {path}: {text[:200]}",
            status_code=status,
            endpoint=path,
        )

    try:
        body = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(
            f"Invalid JSON from {path}: {text[:200]}",
            status_code=status,
            endpoint=path,
        ) from exc

    if not isinstance(body, dict):
        raise DecodeError(
            f"Response from {path} is not a JSON object",
            status_code=status,
            endpoint=path,
        )
    return body


class HttpTransport:
    """Plain-HTTP JSON transport to ``config.host:config.port``."""

    def __init__(self, config: RevenewConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def post_json(self, path: str, payload: Mapping[str, Any]) -> tuple[int, dict[str, Any]]:
        url = build_url(self._config.host, self._config.port, path)
        headers = {
            "content-type": "application/json",
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        body = json.dumps(dict(payload), separators=(",", ":"))

        _logger.debug("POST %s body=%s", url, redact_for_log(payload))

        try:
            async with self._http.post(url, data=body, headers=headers) as resp:
                text = await resp.text()
                status = resp.status
        except TimeoutError as exc:
            raise NoResponseError(f"Request to {path} timed out", endpoint=path) from exc
        except aiohttp.ClientError as exc:
            raise NoResponseError(f"Request to {path} failed: {exc}", endpoint=path) from exc

        _logger.debug("HTTP %d from %s", status, path)
        return status, decode_body(status, text, path)
