"""
Artifact upload orchestration.

Takes the groups found by the matcher, computes an object key for every
file and streams it to the object store. One failing file never stops
the rest of the batch: it is logged, counted, and left out of the result.

Example usage:
    >>> from ossarchiver.uploader import upload_artifacts
    >>> result = upload_artifacts(settings, groups, workspace, CredentialStore())
    >>> for folder, items in result.items():
    ...     for name, url in items:
    ...         print(folder, name, url)
"""

import logging
import os
from collections.abc import Mapping as MappingABC
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import (
    Any,
    Dict,
    Iterator,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from ossarchiver.errors import CredentialsNotFoundError
from ossarchiver.uploader.keys import absolute_path, build_key, relative_path
from ossarchiver.uploader.stores import (
    ObjectStore,
    StoreFactory,
    create_object_store,
    describe_store,
    make_public_url,
)
from ossarchiver.utils.config import ArchiverSettings
from ossarchiver.utils.logging import get_logger
from ossarchiver.utils.metrics import get_metrics
from ossarchiver.utils.secrets import CredentialStore

logger = get_logger(__name__)

metrics = get_metrics()


class UploadedItem(NamedTuple):
    """One uploaded file: its name relative to the group folder and its URL."""

    name: str
    url: str


@dataclass(frozen=True)
class FileOutcome:
    """
    Result of uploading a single file.

    Attributes:
        name: File path relative to its group folder
        key: Object key the file was (or would have been) stored under
        url: Public URL when the upload succeeded
        error: Failure description when it did not
    """

    name: str
    key: str
    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.url is not None


class UploadResult(MappingABC):
    """
    Read-only mapping of group folder -> uploaded items, in group order.

    A group whose files all failed is still present with an empty tuple.
    Failed uploads are available separately through ``failures``; files or
    groups skipped because their relative path could not be computed are
    counted in ``skipped``.
    """

    def __init__(
        self,
        groups: Optional[Mapping[str, Sequence[Tuple[str, str]]]] = None,
        failures: Sequence[FileOutcome] = (),
        skipped: int = 0,
    ) -> None:
        self._groups: Dict[str, Tuple[UploadedItem, ...]] = {
            folder: tuple(UploadedItem(*item) for item in items)
            for folder, items in (groups or {}).items()
        }
        self.failures: Tuple[FileOutcome, ...] = tuple(failures)
        self.skipped = skipped

    def __getitem__(self, folder: str) -> Tuple[UploadedItem, ...]:
        return self._groups[folder]

    def __iter__(self) -> Iterator[str]:
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def __repr__(self) -> str:
        return (
            f"UploadResult(groups={self._groups!r}, "
            f"failures={len(self.failures)}, skipped={self.skipped})"
        )

    @property
    def uploaded_count(self) -> int:
        return sum(len(items) for items in self._groups.values())

    @property
    def complete(self) -> bool:
        """True when nothing failed and nothing was skipped."""
        return not self.failures and self.skipped == 0

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        """Plain ``{folder: [{name, url}, ...]}`` form, order preserved."""
        return {
            folder: [item._asdict() for item in items]
            for folder, items in self._groups.items()
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Sequence[Mapping[str, str]]]) -> "UploadResult":
        return cls({
            folder: [(item["name"], item["url"]) for item in items]
            for folder, items in data.items()
        })


LogSink = Union[logging.Logger, logging.LoggerAdapter]


def upload_file(
    store: ObjectStore,
    bucket: str,
    key: str,
    name: str,
    path: Path,
    log: LogSink,
) -> FileOutcome:
    """
    Stream one file to ``bucket/key``.

    Never raises for store or file errors; they come back as a failed
    FileOutcome and are logged as warnings.
    """
    try:
        size = path.stat().st_size
        with open(path, "rb") as stream:
            log.info(f"Uploading: {key}")
            with metrics.track_upload():
                store.put_object(bucket, key, stream)
        url = make_public_url(store.endpoint, bucket, key)
    except Exception as e:
        log.warning(f"Upload failed: {key}", exc_info=True)
        metrics.record_upload_failure(error_type=type(e).__name__)
        return FileOutcome(name=name, key=key, error=f"{type(e).__name__}: {e}")

    metrics.record_upload_success(bytes_uploaded=size)
    return FileOutcome(name=name, key=key, url=url)


def _upload_group(
    store: ObjectStore,
    settings: ArchiverSettings,
    folder_path: Path,
    group_folder: str,
    files: Sequence[Path],
    log: LogSink,
    sep: str,
) -> Tuple[List[FileOutcome], int]:
    jobs: List[Tuple[str, str, Path]] = []
    skipped = 0
    for file_path in files:
        file_path = absolute_path(file_path)
        name = relative_path(file_path, folder_path, sep=sep)
        if name is None:
            log.warning(f"Skipping file outside its folder: {file_path}")
            skipped += 1
            continue
        key = build_key(settings.upload_folder_or_default(), group_folder, name, sep=sep)
        jobs.append((name, key, file_path))

    def run(job: Tuple[str, str, Path]) -> FileOutcome:
        name, key, file_path = job
        return upload_file(store, settings.bucket, key, name, file_path, log)

    if settings.max_workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=settings.max_workers) as executor:
            # map() yields in submission order, keeping match order
            outcomes = list(executor.map(run, jobs))
    else:
        outcomes = [run(job) for job in jobs]
    return outcomes, skipped


def upload_artifacts(
    settings: ArchiverSettings,
    groups: Mapping[Path, Sequence[Path]],
    workspace: Union[str, Path],
    credentials: CredentialStore,
    log: Optional[LogSink] = None,
    store_factory: StoreFactory = create_object_store,
    sep: str = os.sep,
) -> UploadResult:
    """
    Upload every resolved artifact and collect public URLs.

    ``settings.upload_folder`` must already be expanded; it is used as the
    key prefix verbatim (after normalization).

    Args:
        settings: Endpoint, bucket, credentials id and upload folder
        groups: Ordered folder -> files mapping from ``resolve_artifacts``
        workspace: Workspace root the group folders live under. The
            workspace, group folders and files are compared in absolute
            form, so "." or "ws//" match the paths discovery returns
        credentials: Store the credentials id is resolved against
        log: Build log sink (defaults to this module's logger)
        store_factory: Object-store constructor, called once per batch
        sep: Separator used in workspace paths

    Returns:
        UploadResult with one entry per group whose folder could be
        expressed relative to the workspace

    Raises:
        ConfigurationError: If endpoint, bucket or credentials id is missing
        CredentialsNotFoundError: If the credentials id is unknown
    """
    log = log or logger
    if not groups:
        log.warning("No artifacts matched, nothing to upload")
        return UploadResult()

    settings.validate()

    found = credentials.find_credentials(settings.credentials_id)
    if found is None:
        raise CredentialsNotFoundError(settings.credentials_id)

    workspace = absolute_path(workspace)
    store = store_factory(settings, found)
    logger.debug(f"Using {describe_store(store)} for bucket {settings.bucket}")

    result: Dict[str, List[Tuple[str, str]]] = {}
    failures: List[FileOutcome] = []
    skipped = 0

    for folder_path, files in groups.items():
        folder_path = absolute_path(folder_path)
        group_folder = relative_path(folder_path, workspace, sep=sep)
        if group_folder is None:
            log.warning(f"Skipping folder outside the workspace: {folder_path}")
            skipped += len(files)
            continue

        outcomes, group_skipped = _upload_group(
            store, settings, folder_path, group_folder, files, log, sep
        )
        skipped += group_skipped
        result[group_folder] = [(o.name, o.url) for o in outcomes if o.success]
        failures.extend(o for o in outcomes if not o.success)

    upload_result = UploadResult(result, failures=failures, skipped=skipped)
    log.info(
        f"Uploaded {upload_result.uploaded_count} file(s), "
        f"{len(failures)} failed, {skipped} skipped"
    )
    return upload_result


def summarize(result: UploadResult) -> Dict[str, Any]:
    """Counts for reporting a finished upload."""
    return {
        "groups": len(result),
        "uploaded": result.uploaded_count,
        "failed": len(result.failures),
        "skipped": result.skipped,
    }
