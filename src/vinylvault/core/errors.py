"""Error types raised by the collection data layer.

Per-item outcomes (duplicate rows, a single failed artwork lookup) are never
raised; they are aggregated into the report objects in
``vinylvault.core.data.types``. Everything here aborts the operation it is
raised from and carries a message that can be shown to the user as-is.
"""


class VaultError(Exception):
    """Base class for all Vinyl Vault errors."""

    def __init__(self, message: str) -> None:
        """Initialize the error.

        Args:
            message: Human-readable reason for the failure
        """
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(VaultError):
    """A record failed validation (e.g. blank artist or album)."""


class ParseError(VaultError):
    """A spreadsheet or backup file could not be read."""


class BackupFormatError(ParseError):
    """A backup file was readable but is not a valid snapshot."""


class IntegrityError(VaultError):
    """The store did not reach the expected state after a destructive operation."""


class LookupFailure(VaultError):
    """The external artwork lookup failed (network, HTTP or payload error)."""


class RestoreInterrupted(VaultError):
    """A restore failed after the store was cleared.

    The store is left empty (or partially filled) when this is raised. The
    snapshot file itself is untouched and can be restored again.
    """


class OperationInProgress(VaultError):
    """A long-running operation was started while another one is still running."""
