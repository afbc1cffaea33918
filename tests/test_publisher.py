"""
Unit tests for the publish step.

Checks the outcome status for each way a run can end and that the build
record is written when requested.
"""

import io
from unittest.mock import MagicMock, patch

import pytest

from ossarchiver.errors import ConfigurationError, DiscoveryError
from ossarchiver.matcher import ArtifactSpec
from ossarchiver.uploader import Endpoint, PublishStatus, load_result, publish
from ossarchiver.utils.config import ArchiverSettings
from ossarchiver.utils.logging import get_build_logger, get_correlation_id
from ossarchiver.utils.secrets import Credentials, CredentialStore


class RecordingStore:
    def __init__(self, fail_keys=()):
        self.endpoint = Endpoint("http", "minio.local:9000")
        self.fail_keys = set(fail_keys)
        self.keys = []

    def put_object(self, bucket, key, stream):
        if key in self.fail_keys:
            raise TimeoutError("timed out")
        self.keys.append(key)


@pytest.fixture
def workspace(tmp_path):
    ws = tmp_path / "ws"
    (ws / "dist").mkdir(parents=True)
    (ws / "dist" / "app.tar.gz").write_bytes(b"tar")
    (ws / "dist" / "app.zip").write_bytes(b"zip")
    return ws


@pytest.fixture
def credentials():
    store = MagicMock(spec=CredentialStore)
    store.find_credentials.return_value = Credentials("minio", "minio123")
    return store


@pytest.fixture
def settings():
    return ArchiverSettings(
        endpoint="http://minio.local:9000",
        bucket="artifacts",
        credentials_id="minio",
    )


ENV = {"JOB_NAME": "app", "BUILD_ID": "2026-10-19_10-00-00", "BUILD_NUMBER": "42"}
PREFIX = "build/app/2026-10-19_10-00-00/42"


class TestPublish:
    """Test publish outcomes."""

    def test_success_uses_default_upload_folder(self, workspace, credentials, settings):
        """Test the default upload folder is expanded from build variables."""
        store = RecordingStore()

        outcome = publish(
            [ArtifactSpec(folder="dist", filename="*")],
            workspace,
            settings,
            credentials,
            env=ENV,
            store_factory=MagicMock(return_value=store),
        )

        assert outcome.status == PublishStatus.SUCCESS
        assert outcome.ok is True
        assert store.keys == [f"{PREFIX}/dist/app.tar.gz", f"{PREFIX}/dist/app.zip"]
        assert outcome.result["dist"][0].url == (
            f"http://artifacts.minio.local:9000/{PREFIX}/dist/app.tar.gz"
        )

    def test_custom_upload_folder_template(self, workspace, credentials, settings):
        """Test a configured template with placeholders."""
        settings.upload_folder = "releases/${JOB_NAME}-${BUILD_NUMBER}"
        store = RecordingStore()

        publish(
            [ArtifactSpec(folder="dist", filename="*.zip")],
            workspace,
            settings,
            credentials,
            env=ENV,
            store_factory=MagicMock(return_value=store),
        )

        assert store.keys == ["releases/app-42/dist/app.zip"]
        assert settings.upload_folder == "releases/${JOB_NAME}-${BUILD_NUMBER}"

    def test_partial(self, workspace, credentials, settings):
        """Test a run with a failed file is partial."""
        store = RecordingStore(fail_keys={f"{PREFIX}/dist/app.zip"})

        outcome = publish(
            [ArtifactSpec(folder="dist")],
            workspace,
            settings,
            credentials,
            env=ENV,
            store_factory=MagicMock(return_value=store),
        )

        assert outcome.status == PublishStatus.PARTIAL
        assert outcome.ok is True
        assert [item.name for item in outcome.result["dist"]] == ["app.tar.gz"]

    def test_no_artifacts(self, workspace, credentials, settings):
        """Test nothing matched: no store and no credentials lookup."""
        factory = MagicMock()
        stream = io.StringIO()

        outcome = publish(
            [ArtifactSpec(folder="dist", filename="*.jar"), ArtifactSpec(folder="/abs")],
            workspace,
            settings,
            credentials,
            log=get_build_logger(stream, name="ossarchiver.build.test_no_artifacts"),
            store_factory=factory,
        )

        assert outcome.status == PublishStatus.NO_ARTIFACTS
        assert len(outcome.result) == 0
        factory.assert_not_called()
        credentials.find_credentials.assert_not_called()
        assert "[OSSArchiver][WARN]No artifacts matched, return" in stream.getvalue()

    def test_configuration_error_is_fatal_not_raised(self, workspace, credentials):
        """Test missing settings end the run without raising."""
        stream = io.StringIO()

        outcome = publish(
            [ArtifactSpec(folder="dist")],
            workspace,
            ArchiverSettings(endpoint="http://minio.local:9000"),
            credentials,
            log=get_build_logger(stream, name="ossarchiver.build.test_fatal"),
            store_factory=MagicMock(),
        )

        assert outcome.status == PublishStatus.FATAL
        assert outcome.ok is False
        assert isinstance(outcome.error, ConfigurationError)
        assert len(outcome.result) == 0
        assert "[OSSArchiver][ERROR]Publish exception" in stream.getvalue()

    def test_missing_credentials_is_fatal(self, workspace, settings):
        """Test an unknown credentials id."""
        credentials = MagicMock(spec=CredentialStore)
        credentials.find_credentials.return_value = None

        outcome = publish(
            [ArtifactSpec(folder="dist")], workspace, settings, credentials,
            store_factory=MagicMock(),
        )

        assert outcome.status == PublishStatus.FATAL

    def test_discovery_error_is_fatal(self, workspace, credentials, settings):
        """Test an I/O error during discovery."""
        with patch(
            "ossarchiver.uploader.publisher.resolve_artifacts",
            side_effect=DiscoveryError("listing failed"),
        ):
            outcome = publish(
                [ArtifactSpec(folder="dist")], workspace, settings, credentials
            )

        assert outcome.status == PublishStatus.FATAL
        assert isinstance(outcome.error, DiscoveryError)

    def test_record_is_saved(self, workspace, credentials, settings, tmp_path):
        """Test the result is attached to the build record."""
        record_dir = tmp_path / "builds" / "42"

        outcome = publish(
            [ArtifactSpec(folder="dist", filename="*.zip")],
            workspace,
            settings,
            credentials,
            env=ENV,
            record_dir=record_dir,
            store_factory=MagicMock(return_value=RecordingStore()),
        )

        assert load_result(record_dir) == outcome.result

    def test_record_write_failure_keeps_result(self, workspace, credentials, settings, tmp_path):
        """Test a record that cannot be written does not turn the run fatal."""
        with patch(
            "ossarchiver.uploader.publisher.save_result",
            side_effect=PermissionError("read-only"),
        ):
            outcome = publish(
                [ArtifactSpec(folder="dist")],
                workspace,
                settings,
                credentials,
                env=ENV,
                record_dir=tmp_path / "records",
                store_factory=MagicMock(return_value=RecordingStore()),
            )

        assert outcome.status == PublishStatus.SUCCESS
        assert len(outcome.result["dist"]) == 2

    def test_build_tag_sets_correlation_id(self, workspace, credentials, settings):
        """Test the build tag becomes the correlation id of the run."""
        with patch("ossarchiver.uploader.publisher.set_correlation_id") as mock_set:
            publish(
                [ArtifactSpec(folder="missing")],
                workspace,
                settings,
                credentials,
                env={"BUILD_TAG": "ci-app-42"},
            )

        mock_set.assert_called_once_with("ci-app-42")

    def test_build_tag_is_cleared_after_run(self, workspace, credentials, settings):
        """Test the build tag does not outlive the run it tagged."""
        publish(
            [ArtifactSpec(folder="dist", filename="*.zip")],
            workspace,
            settings,
            credentials,
            env=dict(ENV, BUILD_TAG="ci-app-42"),
            store_factory=MagicMock(return_value=RecordingStore()),
        )

        assert get_correlation_id() != "ci-app-42"

    def test_folder_above_workspace_uploads_nothing(self, workspace, credentials, settings):
        """Test a folder climbing out of the workspace is never uploaded."""
        secret = workspace.parent / "secret"
        secret.mkdir()
        (secret / "id_rsa").write_text("key")
        factory = MagicMock()

        outcome = publish(
            [ArtifactSpec(folder="../secret"), ArtifactSpec(folder="dist/../../secret")],
            workspace,
            settings,
            credentials,
            env=ENV,
            store_factory=factory,
        )

        assert outcome.status == PublishStatus.NO_ARTIFACTS
        factory.assert_not_called()

    @pytest.mark.parametrize("spelling", [".", "./", ".//"])
    def test_relative_workspace_spelling(
        self, workspace, credentials, settings, monkeypatch, spelling
    ):
        """Test a workspace given relative to the working directory."""
        monkeypatch.chdir(workspace)
        store = RecordingStore()

        outcome = publish(
            [ArtifactSpec(folder="dist", filename="*.zip")],
            spelling,
            settings,
            credentials,
            env=ENV,
            store_factory=MagicMock(return_value=store),
        )

        assert outcome.status == PublishStatus.SUCCESS
        assert store.keys == [f"{PREFIX}/dist/app.zip"]
        assert [item.name for item in outcome.result["dist"]] == ["app.zip"]

    def test_workspace_with_trailing_separators(
        self, workspace, credentials, settings, monkeypatch
    ):
        """Test "ws//" relative to the working directory."""
        monkeypatch.chdir(workspace.parent)
        store = RecordingStore()

        outcome = publish(
            [ArtifactSpec(folder="./dist", filename="*.zip")],
            "ws//",
            settings,
            credentials,
            env=ENV,
            store_factory=MagicMock(return_value=store),
        )

        assert outcome.status == PublishStatus.SUCCESS
        assert store.keys == [f"{PREFIX}/dist/app.zip"]
