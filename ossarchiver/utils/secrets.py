"""
Credential lookup for object-store access.

Credentials are referenced by id in the archiver settings and resolved
only when a publish run starts. Supported backends:

- environment: ``OSS_CRED_<ID>_USERNAME`` / ``OSS_CRED_<ID>_PASSWORD``,
  where ``<ID>`` is the id upper-cased with non-alphanumerics as ``_``
- file: a YAML file mapping ids to ``{username, password}``
- google_secret_manager: a secret named after the id whose latest version
  holds ``{"username": ..., "password": ...}`` as JSON

Security Principles:
    - Never log secret values
    - Fail closed: an unknown id resolves to None, never to a default

Usage:
    from ossarchiver.utils.secrets import CredentialStore

    store = CredentialStore()
    credentials = store.find_credentials("oss-upload")
"""

import json
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from google.cloud import secretmanager

from ossarchiver.utils.logging import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "OSS_CRED_"


class CredentialBackend(str, Enum):
    """
    Supported credential storage backends.

    Values:
        ENVIRONMENT: Environment variables (development, CI secrets)
        FILE: YAML credentials file
        GOOGLE_SECRET_MANAGER: Google Cloud Secret Manager
    """

    ENVIRONMENT = "environment"
    FILE = "file"
    GOOGLE_SECRET_MANAGER = "google_secret_manager"


@dataclass(frozen=True)
class Credentials:
    """Username/secret pair; for S3-style stores the access key id and secret."""

    username: str
    password: str = field(repr=False)


@dataclass
class CredentialConfig:
    """
    Configuration for credential lookup.

    Attributes:
        backend: Where credentials are stored
        file_path: Credentials YAML file (FILE backend)
        project_id: GCP project id (GOOGLE_SECRET_MANAGER backend)
        cache_credentials: Keep resolved credentials in memory
    """

    backend: CredentialBackend = CredentialBackend.ENVIRONMENT
    file_path: Optional[str] = None
    project_id: Optional[str] = None
    cache_credentials: bool = True


def env_key(credentials_id: str) -> str:
    """Environment variable stem for ``credentials_id``."""
    return ENV_PREFIX + re.sub(r"[^A-Za-z0-9]", "_", credentials_id).upper()


class CredentialStore:
    """
    Resolves credentials ids to ``Credentials``.

    The backend is chosen from ``OSS_CREDENTIALS_BACKEND`` when no config
    is given (``environment`` by default).

    Example:
        >>> store = CredentialStore(CredentialConfig(
        ...     backend=CredentialBackend.FILE, file_path="credentials.yaml"))
        >>> store.find_credentials("oss-upload")
        Credentials(username='AKID...')
    """

    def __init__(self, config: Optional[CredentialConfig] = None) -> None:
        self.config = config or self._detect_config()
        self._cache: Dict[str, Credentials] = {}
        self._gcp_client: Optional[Any] = None
        logger.debug(f"CredentialStore using backend: {self.config.backend.value}")

    def _detect_config(self) -> CredentialConfig:
        backend = CredentialBackend(
            os.getenv("OSS_CREDENTIALS_BACKEND", CredentialBackend.ENVIRONMENT.value)
        )
        return CredentialConfig(
            backend=backend,
            file_path=os.getenv("OSS_CREDENTIALS_FILE"),
            project_id=os.getenv("GOOGLE_CLOUD_PROJECT"),
        )

    def find_credentials(self, credentials_id: str) -> Optional[Credentials]:
        """
        Look up credentials by id.

        Args:
            credentials_id: Id configured in the archiver settings

        Returns:
            Credentials, or None when the id is unknown to the backend
        """
        if self.config.cache_credentials and credentials_id in self._cache:
            return self._cache[credentials_id]

        if self.config.backend == CredentialBackend.FILE:
            credentials = self._from_file(credentials_id)
        elif self.config.backend == CredentialBackend.GOOGLE_SECRET_MANAGER:
            credentials = self._from_gcp(credentials_id)
        else:
            credentials = self._from_env(credentials_id)

        if credentials is None:
            logger.debug(f"Credentials id not found: {credentials_id}")
            return None

        if self.config.cache_credentials:
            self._cache[credentials_id] = credentials
        return credentials

    def _from_env(self, credentials_id: str) -> Optional[Credentials]:
        stem = env_key(credentials_id)
        username = os.getenv(f"{stem}_USERNAME")
        password = os.getenv(f"{stem}_PASSWORD")
        if username is None or password is None:
            return None
        return Credentials(username=username, password=password)

    def _from_file(self, credentials_id: str) -> Optional[Credentials]:
        if not self.config.file_path:
            logger.warning("Credentials file backend selected but no file configured")
            return None

        path = Path(self.config.file_path)
        if not path.exists():
            logger.warning(f"Credentials file not found: {path}")
            return None

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        entry = data.get(credentials_id) if isinstance(data, dict) else None
        return self._parse_entry(credentials_id, entry)

    def _from_gcp(self, credentials_id: str) -> Optional[Credentials]:
        if self._gcp_client is None:
            self._gcp_client = secretmanager.SecretManagerServiceClient()

        name = (
            f"projects/{self.config.project_id}/secrets/{credentials_id}/versions/latest"
        )
        try:
            response = self._gcp_client.access_secret_version(request={"name": name})
        except Exception as e:
            logger.warning(f"Failed to read secret '{credentials_id}' from GCP: {e}")
            return None

        try:
            entry = json.loads(response.payload.data.decode("UTF-8"))
        except json.JSONDecodeError as e:
            logger.warning(f"Secret '{credentials_id}' is not valid JSON: {e}")
            return None
        return self._parse_entry(credentials_id, entry)

    @staticmethod
    def _parse_entry(credentials_id: str, entry: Any) -> Optional[Credentials]:
        if not isinstance(entry, dict):
            return None
        username = entry.get("username")
        password = entry.get("password")
        if username is None or password is None:
            logger.warning(f"Credentials '{credentials_id}' lack username or password")
            return None
        return Credentials(username=str(username), password=str(password))

    def clear_cache(self) -> None:
        """Forget cached credentials (e.g. after rotation)."""
        self._cache.clear()
