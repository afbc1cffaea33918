"""
Archiver settings: where artifacts go and which credentials to use.

Settings are plain values passed into each publish run. They can be read
from the environment (``.env`` supported) or from a YAML settings file;
saving writes the whole file back.
"""

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from string import Template
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from dotenv import load_dotenv

from ossarchiver.errors import ConfigurationError
from ossarchiver.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_UPLOAD_FOLDER = "build/${JOB_NAME}/${BUILD_ID}/${BUILD_NUMBER}"
DEFAULT_PROVIDER = "s3"
SUPPORTED_PROVIDERS = ["s3", "gcs"]


@dataclass
class ArchiverSettings:
    """
    Object-store settings for a publish run.

    Attributes:
        endpoint: Object-store endpoint, e.g. ``https://oss-cn-hangzhou.aliyuncs.com``
        bucket: Target bucket name
        upload_folder: Key prefix template; ``${VAR}`` placeholders are
            expanded from the build environment before upload
        credentials_id: Id looked up in the credential store at publish time
        provider: Object-store client to use (``s3`` or ``gcs``)
        max_workers: Files uploaded concurrently within a group (1 = sequential)
        timeout_seconds: Connect/read timeout for store requests
    """

    endpoint: Optional[str] = None
    bucket: Optional[str] = None
    upload_folder: Optional[str] = None
    credentials_id: Optional[str] = None
    provider: str = DEFAULT_PROVIDER
    max_workers: int = 1
    timeout_seconds: int = 300

    def upload_folder_or_default(self) -> str:
        """Return the upload folder template, or the default when unset."""
        if not self.upload_folder:
            return DEFAULT_UPLOAD_FOLDER
        return self.upload_folder

    def missing_fields(self) -> List[str]:
        """Names of required settings that are empty."""
        return [
            name
            for name in ("endpoint", "bucket", "credentials_id")
            if not getattr(self, name)
        ]

    def validate(self) -> None:
        """
        Check that endpoint, bucket and credentials id are all set.

        Raises:
            ConfigurationError: If any required setting is missing
        """
        missing = self.missing_fields()
        if missing:
            raise ConfigurationError(
                f"Invalid configuration: missing {', '.join(missing)}"
            )

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "ArchiverSettings":
        """
        Load settings from environment variables.

        A ``.env`` file is loaded first when present (``env_file`` or the
        current directory); variables already exported take precedence.

        Environment variables:
            OSS_ENDPOINT, OSS_BUCKET, OSS_UPLOAD_FOLDER, OSS_CREDENTIALS_ID,
            OSS_PROVIDER, OSS_MAX_WORKERS, OSS_TIMEOUT_SECONDS

        Raises:
            ConfigurationError: If a numeric variable is not an integer
        """
        env_path = Path(env_file) if env_file else Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        try:
            max_workers = int(os.getenv("OSS_MAX_WORKERS", "1"))
            timeout_seconds = int(os.getenv("OSS_TIMEOUT_SECONDS", "300"))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        return cls(
            endpoint=os.getenv("OSS_ENDPOINT"),
            bucket=os.getenv("OSS_BUCKET"),
            upload_folder=os.getenv("OSS_UPLOAD_FOLDER"),
            credentials_id=os.getenv("OSS_CREDENTIALS_ID"),
            provider=os.getenv("OSS_PROVIDER", DEFAULT_PROVIDER).lower(),
            max_workers=max_workers,
            timeout_seconds=timeout_seconds,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ArchiverSettings":
        """Build settings from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown settings: {unknown}")
        return cls(**{key: value for key, value in data.items() if key in known})

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ArchiverSettings":
        """
        Load settings from a YAML file.

        A missing file yields default (empty) settings, like a fresh
        installation with nothing configured yet.

        Raises:
            ConfigurationError: If the file is not a YAML mapping
        """
        settings_path = Path(path)
        if not settings_path.exists():
            logger.info(f"Settings file not found, using defaults: {settings_path}")
            return cls()

        with open(settings_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Settings file must contain a mapping: {settings_path}"
            )
        return cls.from_dict(data)

    def save(self, path: Union[str, Path]) -> None:
        """Write all settings to a YAML file, replacing its contents."""
        settings_path = Path(path)
        settings_path.parent.mkdir(parents=True, exist_ok=True)
        with open(settings_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(asdict(self), f, sort_keys=False)
        logger.info(f"Settings saved: {settings_path}")


def expand_variables(template: str, env: Mapping[str, str]) -> str:
    """
    Expand ``$VAR`` and ``${VAR}`` placeholders from ``env``.

    Unknown variables are left as written.

    Example:
        >>> expand_variables("build/${JOB_NAME}/${BUILD_NUMBER}", {"JOB_NAME": "app", "BUILD_NUMBER": "7"})
        'build/app/7'
    """
    return Template(template).safe_substitute(env)


def build_environment(overrides: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Process environment merged with ``overrides`` (overrides win)."""
    env = dict(os.environ)
    if overrides:
        env.update(overrides)
    return env
