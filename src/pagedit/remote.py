"""Async httpx client for the GitHub Contents API.

Reads and writes whole JSON data files. The blob ``sha`` returned by the
API is the compare-and-swap token: every write carries the sha the
document was read under, and the API refuses the write with 409 when the
file has changed since.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any

import httpx

from .cache import CacheEntry
from .config import CredentialStore, SiteConfig
from .errors import (
    ConflictError,
    CredentialMissingError,
    NotFoundError,
    RemoteReadError,
    TransientError,
    UnauthorizedError,
    WriteError,
)

logger = logging.getLogger(__name__)

_TRANSIENT_STATUS_CODES = {429, 500, 502, 503, 504}
_AUTH_ERROR_STATUS_CODES = {401, 403}


def encode_document(document: object) -> str:
    """Serialize *document* as pretty JSON with a trailing newline, base64-encoded."""
    text = json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_document(content: str) -> object:
    """Inverse of :func:`encode_document`; tolerates the API's line breaks."""
    raw = base64.b64decode(content.replace("\n", ""), validate=True)
    return json.loads(raw.decode("utf-8"))


class ContentsClient:
    """Async client for one repository's data directory.

    Usage::

        async with ContentsClient(config, credentials) as client:
            entry = await client.read("home")
            new_sha = await client.write("home", entry.document, entry.content_hash)
    """

    def __init__(
        self,
        config: SiteConfig,
        credentials: CredentialStore,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._credentials = credentials
        kwargs: dict[str, Any] = {}
        if config.timeout is not None:
            kwargs["timeout"] = config.timeout
        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            headers={"Accept": "application/vnd.github.v3+json"},
            transport=transport,
            **kwargs,
        )

    async def __aenter__(self) -> ContentsClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _auth_headers(self) -> dict[str, str]:
        token = self._credentials.get()
        if not token:
            raise CredentialMissingError()
        return {"Authorization": f"token {token}"}

    async def read(self, file_name: str) -> CacheEntry:
        """Fetch *file_name* and return its document and sha.

        Raises:
            NotFoundError: On 404.
            UnauthorizedError: On 401/403.
            TransientError: On 429/5xx or a transport failure.
            RemoteReadError: On any other failure status or an undecodable body.
            CredentialMissingError: If no token is stored.
        """
        path = self.config.contents_path(file_name)
        headers = self._auth_headers()
        logger.debug("GET %s (ref=%s)", path, self.config.branch)
        try:
            response = await self._client.get(
                path, params={"ref": self.config.branch}, headers=headers
            )
        except httpx.TransportError as exc:
            logger.warning("Fetching %s.json failed: %s", file_name, exc)
            raise TransientError(f"Failed to fetch {file_name}.json ({exc})") from exc

        status = response.status_code
        if status != 200:
            message = f"Failed to fetch {file_name}.json ({status})"
            logger.warning("%s: %s", message, response.text[:200])
            if status == 404:
                raise NotFoundError(message, status)
            if status in _AUTH_ERROR_STATUS_CODES:
                raise UnauthorizedError(message, status)
            if status in _TRANSIENT_STATUS_CODES:
                raise TransientError(message, status)
            raise RemoteReadError(message, status)

        try:
            data = response.json()
            document = decode_document(data["content"])
            sha = data["sha"]
        except (KeyError, TypeError, ValueError, binascii.Error) as exc:
            raise RemoteReadError(
                f"Failed to fetch {file_name}.json (unreadable content: {exc})", status
            ) from exc
        return CacheEntry(document=document, content_hash=sha)

    async def write(
        self,
        file_name: str,
        document: object,
        expected_hash: str,
        *,
        address: str = "",
    ) -> str:
        """Replace *file_name* with *document* if its sha is still *expected_hash*.

        Returns:
            The new sha of the file.

        Raises:
            ConflictError: On 409, the file changed since it was read.
            WriteError: On any other failure.
            CredentialMissingError: If no token is stored.
        """
        path = self.config.contents_path(file_name)
        headers = self._auth_headers()
        payload = {
            "message": f"Edit {file_name}: {address}" if address else f"Edit {file_name}",
            "content": encode_document(document),
            "sha": expected_hash,
            "branch": self.config.branch,
        }
        logger.debug("PUT %s (sha=%s)", path, expected_hash)
        try:
            response = await self._client.put(path, json=payload, headers=headers)
        except httpx.TransportError as exc:
            logger.warning("Saving %s.json failed: %s", file_name, exc)
            raise WriteError(f"Save failed ({exc})") from exc

        status = response.status_code
        if status == 409:
            logger.warning("Conflict saving %s.json at sha %s", file_name, expected_hash)
            raise ConflictError(status)
        if not 200 <= status < 300:
            logger.warning("Save of %s.json failed (%s): %s", file_name, status, response.text[:200])
            raise WriteError(f"Save failed ({status})", status)

        try:
            return response.json()["content"]["sha"]
        except (KeyError, TypeError, ValueError) as exc:
            raise WriteError(f"Save failed (unexpected response: {exc})", status) from exc
