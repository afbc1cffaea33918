"""
Object-store uploader module.

Builds object keys for resolved artifacts, streams them to an S3-compatible
or GCS bucket, and records the resulting public URLs with the build.
"""

from .keys import build_key, relative_path
from .stores import (
    BucketCheck,
    Endpoint,
    GCSObjectStore,
    ObjectStore,
    S3ObjectStore,
    check_bucket_access,
    create_object_store,
    make_public_url,
    parse_endpoint,
)
from .uploader import (
    FileOutcome,
    UploadedItem,
    UploadResult,
    upload_artifacts,
    upload_file,
)
from .record import RECORD_ID, load_result, save_result
from .publisher import PublishOutcome, PublishStatus, publish

__all__ = [
    "build_key",
    "relative_path",
    "BucketCheck",
    "Endpoint",
    "GCSObjectStore",
    "ObjectStore",
    "S3ObjectStore",
    "check_bucket_access",
    "create_object_store",
    "make_public_url",
    "parse_endpoint",
    "FileOutcome",
    "UploadedItem",
    "UploadResult",
    "upload_artifacts",
    "upload_file",
    "RECORD_ID",
    "load_result",
    "save_result",
    "PublishOutcome",
    "PublishStatus",
    "publish",
]
