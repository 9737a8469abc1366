"""pagedit exception hierarchy.

All pagedit exceptions inherit from PageEditError. The message of each
error is the text shown to the user in the editor panel.
"""

from __future__ import annotations

CONFLICT_MESSAGE = "Conflict: someone else edited this file. Reload and try again."


class PageEditError(Exception):
    """Base exception for all pagedit errors."""


class ConfigError(PageEditError):
    """Missing or invalid site configuration (e.g., no repository)."""


class CredentialMissingError(PageEditError):
    """No access token is stored."""

    def __init__(self, message: str = "No access token stored") -> None:
        super().__init__(message)


class InvalidTransitionError(PageEditError):
    """A panel operation is not allowed in the session's current state."""


# -- Addresses -------------------------------------------------------------


class AddressError(PageEditError):
    """Base for address parsing and resolution errors."""

    prefix = "Bad address"

    def __init__(self, address: str, reason: str) -> None:
        self.address = address
        self.reason = reason
        super().__init__(f"{self.prefix} {address!r}: {reason}")


class MalformedAddressError(AddressError):
    """The address string cannot be parsed."""

    prefix = "Malformed address"


class InvalidParentError(AddressError):
    """The parent of the assigned position is missing or not a container."""

    prefix = "Cannot assign at"


# -- Remote store ----------------------------------------------------------


class RemoteStoreError(PageEditError):
    """Base for errors talking to the remote content store.

    Attributes:
        status_code: HTTP status of the failed response, or None when the
            request never got one (connection errors, bad payloads).
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RemoteReadError(RemoteStoreError):
    """Fetching a document failed."""


class NotFoundError(RemoteReadError):
    """The document does not exist on the branch (404)."""


class UnauthorizedError(RemoteReadError):
    """The token was rejected (401/403)."""


class TransientError(RemoteReadError):
    """Rate limiting, server errors, or a transport failure."""


class WriteError(RemoteStoreError):
    """Writing a document failed."""


class ConflictError(WriteError):
    """The document changed since it was read (409).

    The message is always CONFLICT_MESSAGE.
    """

    def __init__(self, status_code: int | None = 409) -> None:
        super().__init__(CONFLICT_MESSAGE, status_code)
