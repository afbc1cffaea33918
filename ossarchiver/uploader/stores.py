"""
Object-store clients.

Two providers are supported behind one small interface:

- ``s3``: any S3-compatible endpoint (Aliyun OSS, MinIO, AWS) through
  boto3. The credential username is the access key id, the password the
  secret key.
- ``gcs``: Google Cloud Storage through google-cloud-storage. The
  credential password holds a service-account key (JSON), the username
  the project id.

Public URLs use virtual-hosted style: ``{scheme}://{bucket}.{host}/{key}``.
"""

import json
import time
from dataclasses import dataclass
from typing import IO, Any, Callable, List, NamedTuple, Optional, Protocol
from urllib.parse import urlsplit

import boto3
from botocore.config import Config as BotoConfig
from google.cloud import storage
from google.oauth2 import service_account

from ossarchiver.errors import ConfigurationError, CredentialsNotFoundError
from ossarchiver.utils.config import SUPPORTED_PROVIDERS, ArchiverSettings
from ossarchiver.utils.logging import get_logger, log_function_call
from ossarchiver.utils.secrets import Credentials, CredentialStore

logger = get_logger(__name__)

DEFAULT_SCHEME = "http"


class Endpoint(NamedTuple):
    """Scheme and authority (host[:port]) of an object-store endpoint."""

    scheme: str
    authority: str

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.authority}"


def parse_endpoint(value: str) -> Endpoint:
    """
    Split an endpoint setting into scheme and authority.

    A bare host such as ``oss-cn-hangzhou.aliyuncs.com`` gets the ``http``
    scheme, as the OSS client assumes.

    Raises:
        ConfigurationError: If no host can be found
    """
    raw = value.strip()
    if "://" not in raw:
        raw = f"{DEFAULT_SCHEME}://{raw}"
    parts = urlsplit(raw)
    if not parts.netloc:
        raise ConfigurationError(f"Invalid endpoint: {value!r}")
    return Endpoint(scheme=parts.scheme.lower(), authority=parts.netloc)


def make_public_url(endpoint: Endpoint, bucket: str, key: str) -> str:
    """
    Public URL of an object.

    Example:
        >>> make_public_url(Endpoint("https", "oss-cn-hangzhou.aliyuncs.com"), "ci", "build/a.txt")
        'https://ci.oss-cn-hangzhou.aliyuncs.com/build/a.txt'
    """
    return f"{endpoint.scheme}://{bucket}.{endpoint.authority}/{key}"


class ObjectStore(Protocol):
    """What the uploader needs from an object-store client."""

    endpoint: Endpoint

    def put_object(self, bucket: str, key: str, stream: IO[bytes]) -> None:
        ...

    def list_objects(self, bucket: str, max_keys: int = 1) -> List[str]:
        ...


class S3ObjectStore:
    """
    S3-compatible store backed by a boto3 client.

    SDK-level retries are turned off: a failed upload is final for that
    file and reported as such.
    """

    def __init__(
        self,
        endpoint: str,
        credentials: Credentials,
        timeout_seconds: int = 300,
    ) -> None:
        self.endpoint = parse_endpoint(endpoint)
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint.url,
            aws_access_key_id=credentials.username,
            aws_secret_access_key=credentials.password,
            config=BotoConfig(
                connect_timeout=timeout_seconds,
                read_timeout=timeout_seconds,
                retries={"total_max_attempts": 1, "mode": "standard"},
                s3={"addressing_style": "virtual"},
            ),
        )

    def put_object(self, bucket: str, key: str, stream: IO[bytes]) -> None:
        self._client.put_object(Bucket=bucket, Key=key, Body=stream)

    def list_objects(self, bucket: str, max_keys: int = 1) -> List[str]:
        response = self._client.list_objects_v2(Bucket=bucket, MaxKeys=max_keys)
        return [item["Key"] for item in response.get("Contents", [])]


class GCSObjectStore:
    """Google Cloud Storage backed by a google-cloud-storage client."""

    def __init__(
        self,
        endpoint: str,
        credentials: Credentials,
        timeout_seconds: int = 300,
    ) -> None:
        self.endpoint = parse_endpoint(endpoint)
        self.timeout_seconds = timeout_seconds

        try:
            key_info = json.loads(credentials.password)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                "GCS credentials must hold a service-account key (JSON)"
            ) from e

        self._client = storage.Client(
            project=credentials.username or key_info.get("project_id"),
            credentials=service_account.Credentials.from_service_account_info(key_info),
            client_options={"api_endpoint": self.endpoint.url},
        )

    def put_object(self, bucket: str, key: str, stream: IO[bytes]) -> None:
        blob = self._client.bucket(bucket).blob(key)
        blob.upload_from_file(stream, timeout=self.timeout_seconds)

    def list_objects(self, bucket: str, max_keys: int = 1) -> List[str]:
        blobs = self._client.list_blobs(bucket, max_results=max_keys)
        return [blob.name for blob in blobs]


StoreFactory = Callable[[ArchiverSettings, Credentials], ObjectStore]


def create_object_store(settings: ArchiverSettings, credentials: Credentials) -> ObjectStore:
    """
    Construct the store client for ``settings.provider``.

    Raises:
        ConfigurationError: If the provider is unknown
    """
    provider = (settings.provider or "s3").lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(
            f"Unknown object-store provider: {settings.provider} "
            f"(supported: {', '.join(SUPPORTED_PROVIDERS)})"
        )
    if provider == "gcs":
        return GCSObjectStore(settings.endpoint, credentials, settings.timeout_seconds)
    return S3ObjectStore(settings.endpoint, credentials, settings.timeout_seconds)


@dataclass
class BucketCheck:
    """
    Result of a bucket connectivity check.

    Attributes:
        ok: Whether the bucket could be listed with the credentials
        message: Human-readable outcome
        latency_ms: Time taken by the check
    """

    ok: bool
    message: str
    latency_ms: Optional[float] = None


@log_function_call
def check_bucket_access(
    settings: ArchiverSettings,
    credentials: CredentialStore,
    store_factory: StoreFactory = create_object_store,
) -> BucketCheck:
    """
    Check whether the configured credentials can list the bucket.

    Meant for validating settings before they are used by a build; never
    raises.

    Args:
        settings: Settings to test (endpoint, bucket, credentials id)
        credentials: Store the credentials id is looked up in
        store_factory: Store constructor (replaceable in tests)

    Returns:
        BucketCheck describing the outcome
    """
    start_time = time.time()
    try:
        settings.validate()
        found = credentials.find_credentials(settings.credentials_id)
        if found is None:
            raise CredentialsNotFoundError(settings.credentials_id)

        store = store_factory(settings, found)
        store.list_objects(settings.bucket, max_keys=1)
    except Exception as e:
        latency_ms = (time.time() - start_time) * 1000
        logger.warning(f"Bucket check failed: {e}")
        return BucketCheck(ok=False, message=f"Validation failed: {e}", latency_ms=latency_ms)

    latency_ms = (time.time() - start_time) * 1000
    logger.info(f"Bucket check OK: {settings.bucket} ({latency_ms:.2f}ms)")
    return BucketCheck(ok=True, message="Credentials are valid", latency_ms=latency_ms)


def describe_store(store: Any) -> str:
    """Short description of a store for log lines."""
    endpoint = getattr(store, "endpoint", None)
    if isinstance(endpoint, Endpoint):
        return f"{type(store).__name__}({endpoint.url})"
    return type(store).__name__
