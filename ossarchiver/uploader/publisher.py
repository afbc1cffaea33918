"""
Publish step: discover artifacts, upload them, record the result.

``publish`` is best-effort. Whatever goes wrong, it returns a
``PublishOutcome`` instead of raising, so the build that runs it keeps its
own status; callers that want a failing step can check ``outcome.ok``.
"""

import os
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

from ossarchiver.matcher import ArtifactSpec, resolve_artifacts
from ossarchiver.uploader.record import save_result
from ossarchiver.uploader.keys import absolute_path
from ossarchiver.uploader.stores import StoreFactory, create_object_store
from ossarchiver.uploader.uploader import LogSink, UploadResult, upload_artifacts
from ossarchiver.utils.config import ArchiverSettings, expand_variables
from ossarchiver.utils.logging import clear_correlation_id, get_logger, set_correlation_id
from ossarchiver.utils.metrics import get_metrics
from ossarchiver.utils.secrets import CredentialStore

logger = get_logger(__name__)


class PublishStatus(str, Enum):
    """
    How a publish run ended.

    Values:
        SUCCESS: Every matched file was uploaded
        PARTIAL: Some files failed or were skipped; the rest were uploaded
        NO_ARTIFACTS: Nothing matched, nothing was attempted
        FATAL: Configuration, credentials or discovery failed; nothing uploaded
    """

    SUCCESS = "success"
    PARTIAL = "partial"
    NO_ARTIFACTS = "no_artifacts"
    FATAL = "fatal"


@dataclass(frozen=True)
class PublishOutcome:
    """
    Outcome of ``publish``.

    Attributes:
        status: How the run ended
        result: Upload result (empty unless files were attempted)
        error: The exception behind a FATAL run
    """

    status: PublishStatus
    result: UploadResult
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status != PublishStatus.FATAL


def publish(
    specs: Iterable[ArtifactSpec],
    workspace: Union[str, Path],
    settings: ArchiverSettings,
    credentials: CredentialStore,
    env: Optional[Mapping[str, str]] = None,
    log: Optional[LogSink] = None,
    record_dir: Optional[Union[str, Path]] = None,
    store_factory: StoreFactory = create_object_store,
    sep: str = os.sep,
) -> PublishOutcome:
    """
    Archive a build's artifacts to the object store.

    Args:
        specs: Configured artifact entries of the job
        workspace: Workspace root of the build (any spelling: ".", "ws//"
            and absolute paths all work)
        settings: Archiver settings (upload folder not yet expanded)
        credentials: Store the credentials id is resolved against
        env: Build variables for upload-folder expansion (``JOB_NAME``,
            ``BUILD_ID``, ``BUILD_NUMBER``, ...)
        log: Build log sink
        record_dir: Where to attach the result; not saved when None
        store_factory: Object-store constructor
        sep: Separator used in workspace paths

    Returns:
        PublishOutcome; never raises for archiver errors
    """
    env = env or {}
    tagged = bool(env.get("BUILD_TAG"))
    if tagged:
        set_correlation_id(env["BUILD_TAG"])

    try:
        return _publish(
            specs,
            absolute_path(workspace),
            settings,
            credentials,
            env,
            log or logger,
            record_dir,
            store_factory,
            sep,
        )
    finally:
        # the build tag only tags this run's log lines
        if tagged:
            clear_correlation_id()


def _publish(
    specs: Iterable[ArtifactSpec],
    workspace: Path,
    settings: ArchiverSettings,
    credentials: CredentialStore,
    env: Mapping[str, str],
    log: LogSink,
    record_dir: Optional[Union[str, Path]],
    store_factory: StoreFactory,
    sep: str,
) -> PublishOutcome:
    metrics = get_metrics()
    try:
        groups = resolve_artifacts(specs, workspace)
        if not groups:
            log.warning("No artifacts matched, return")
            metrics.record_publish(PublishStatus.NO_ARTIFACTS.value)
            return PublishOutcome(PublishStatus.NO_ARTIFACTS, UploadResult())

        expanded = replace(
            settings,
            upload_folder=expand_variables(settings.upload_folder_or_default(), env),
        )
        result = upload_artifacts(
            expanded,
            groups,
            workspace,
            credentials,
            log=log,
            store_factory=store_factory,
            sep=sep,
        )
    except Exception as e:
        log.error("Publish exception", exc_info=True)
        metrics.record_publish(PublishStatus.FATAL.value)
        return PublishOutcome(PublishStatus.FATAL, UploadResult(), error=e)

    if record_dir is not None:
        try:
            save_result(result, record_dir)
        except OSError:
            log.error("Failed to record upload result", exc_info=True)

    status = PublishStatus.SUCCESS if result.complete else PublishStatus.PARTIAL
    metrics.record_publish(status.value)
    return PublishOutcome(status, result)
