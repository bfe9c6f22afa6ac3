"""Remote failure taxonomy.

Convention:
- ``NotFoundError``: the remote item does not exist. Never retried and never
  masked by cached data.
- ``AuthRequiredError``: the bearer credential is missing or expired. Never
  retried here; surfaced unchanged so the identity layer can re-authenticate.
- ``TransientError``: network or server failure. Retry policy belongs to the
  caller.

An unresolvable link or embedded path is *not* an error: resolvers return
``None`` for it.
"""

from __future__ import annotations


class RemoteError(Exception):
    """Base class for failures reported by the remote drive."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(RemoteError):
    """Raised when the requested remote item does not exist."""


class AuthRequiredError(RemoteError):
    """Raised when the remote rejects or lacks a valid credential."""


class TransientError(RemoteError):
    """Raised for network failures and retryable server responses."""
