"""Failures raised while importing a foreign ledger."""

from __future__ import annotations


class ForeignLedgerError(RuntimeError):
    """Base class for foreign ledger failures."""


class ForeignAuthError(ForeignLedgerError):
    """The access token or authorization code was rejected.

    Raised before any local state is changed.
    """


class UpstreamUnavailableError(ForeignLedgerError):
    """A foreign ledger request failed or returned a payload that could not be read."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MigrationFailedError(ForeignLedgerError):
    """The migration could not continue; the user's status stays pending."""
