"""
Exception types for the artifact archiver.

Only the fatal categories are exceptions. They abort a publish run before
any file is sent and are turned into a single log entry by
``ossarchiver.uploader.publisher.publish``. Per-file failures and
relative-path mismatches are recoverable and never raised out of the
orchestrator.
"""


class ArchiverError(Exception):
    """Base class for fatal archiver errors."""


class ConfigurationError(ArchiverError):
    """Settings are missing a required value or name an unknown provider."""


class CredentialsNotFoundError(ArchiverError):
    """The configured credentials id does not resolve to a credential."""

    def __init__(self, credentials_id: str) -> None:
        super().__init__(f"Credentials not found: id={credentials_id}")
        self.credentials_id = credentials_id


class DiscoveryError(ArchiverError):
    """Listing or resolving artifact folders failed with an I/O error."""
