"""
Job configuration loader and validator.

A job lists the artifacts it wants archived in a YAML file:

    ```yaml
    version: "1.0"
    artifacts:
      - folder: build/libs
        filename: "*.jar"
      - folder: build/reports
        filename: ""          # whole folder
    ```

Validation mirrors the checks shown when editing a job: blank values are
warnings (they widen the upload), absolute paths are errors. Discovery
skips bad entries by itself, so these errors are advisory.

Usage:
    >>> config = load_config("archive.yaml")
    >>> problems = validate_config(config)
    >>> specs = parse_artifacts(config)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ossarchiver.matcher import ArtifactSpec, PathSeverity, check_artifact_path
from ossarchiver.utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_VERSIONS = ["1.0"]

EMPTY_FOLDER_MESSAGE = "The whole workspace will be uploaded"
EMPTY_FILENAME_MESSAGE = "The whole folder will be uploaded"


@dataclass
class ConfigError:
    """Validation problem in a job configuration file."""

    field: str
    message: str
    value: Optional[Any] = None
    severity: PathSeverity = PathSeverity.ERROR

    def __str__(self) -> str:
        text = f"{self.field}: {self.message}"
        if self.value is not None:
            text = f"{text} (got: {self.value})"
        if self.severity == PathSeverity.WARNING:
            return f"warning: {text}"
        return text


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a job configuration from YAML.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the path is not a file or the file is empty/not a mapping
        yaml.YAMLError: If the YAML is malformed
    """
    path = Path(config_path)
    logger.info(f"Loading job configuration from: {path}")

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Configuration path is not a file: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML: {e}")
        raise

    if config is None:
        raise ValueError("Configuration file is empty")
    if not isinstance(config, dict):
        raise ValueError("Configuration file must contain a mapping")
    return dict(config)


def validate_config(config: Dict[str, Any]) -> List[ConfigError]:
    """
    Validate a job configuration.

    Returns:
        Errors and warnings; blocking problems have ERROR severity
    """
    errors: List[ConfigError] = []

    version = config.get("version")
    if version is None:
        errors.append(ConfigError("version", "Missing required field"))
    elif str(version) not in SUPPORTED_VERSIONS:
        errors.append(
            ConfigError("version", f"Unsupported version (supported: {SUPPORTED_VERSIONS})", version)
        )

    artifacts = config.get("artifacts")
    if artifacts is None:
        errors.append(ConfigError("artifacts", "Missing required field"))
        return errors
    if not isinstance(artifacts, list):
        errors.append(ConfigError("artifacts", "Must be a list", type(artifacts).__name__))
        return errors
    if not artifacts:
        errors.append(
            ConfigError("artifacts", "No artifacts configured", severity=PathSeverity.WARNING)
        )

    for i, entry in enumerate(artifacts):
        prefix = f"artifacts[{i}]"
        if not isinstance(entry, dict):
            errors.append(ConfigError(prefix, "Must be a mapping", type(entry).__name__))
            continue

        for name, empty_message in (
            ("folder", EMPTY_FOLDER_MESSAGE),
            ("filename", EMPTY_FILENAME_MESSAGE),
        ):
            value = entry.get(name)
            check = check_artifact_path("" if value is None else str(value), empty_message)
            if check.severity != PathSeverity.OK:
                errors.append(
                    ConfigError(f"{prefix}.{name}", check.message, value, check.severity)
                )

    blocking = [e for e in errors if e.severity == PathSeverity.ERROR]
    if blocking:
        logger.warning(f"Job configuration has {len(blocking)} error(s)")
    return errors


def parse_artifacts(config: Dict[str, Any]) -> List[ArtifactSpec]:
    """
    Artifact specs of a job configuration, in file order.

    Entries that are not mappings are dropped; missing values become "".
    """
    specs = []
    for entry in config.get("artifacts") or []:
        if not isinstance(entry, dict):
            continue
        specs.append(
            ArtifactSpec(
                folder=str(entry.get("folder") or ""),
                filename=str(entry.get("filename") or ""),
            )
        )
    return specs
