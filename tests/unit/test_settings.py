import pytest
from pydantic import ValidationError

from docbatch.config.settings import DRIVE_UPLOAD_URL, Settings


class TestSettingsDefaults:
    def test_default_app_env(self) -> None:
        s = Settings()
        assert s.app_env == "dev"

    def test_default_storage_backend(self) -> None:
        s = Settings()
        assert s.storage_backend == "memory"

    def test_default_db_port(self) -> None:
        s = Settings()
        assert s.db_port == 5432

    def test_default_pipeline_retries(self) -> None:
        s = Settings()
        assert s.pipeline_max_retries == 2
        assert s.pipeline_retry_delay_seconds == 1.0
        assert s.pipeline_continue_on_error is True

    def test_default_upload_settings(self) -> None:
        s = Settings()
        assert s.upload_enabled is False
        assert s.upload_url == DRIVE_UPLOAD_URL
        assert s.upload_max_attempts == 3
        assert s.drive_folder_id is None
        assert s.upload_history_limit == 100

    def test_default_rendering_settings(self) -> None:
        s = Settings()
        assert s.pdf_quality == "standard"
        assert s.include_source_footer is True
        assert s.text_font_path is None
        assert s.image_allow_local_files is False

    def test_default_pool_settings(self) -> None:
        s = Settings()
        assert s.db_pool_min_size == 1
        assert s.db_pool_max_size == 4
        assert s.db_pool_timeout_seconds == 10.0


class TestSettingsFromEnv:
    def test_loads_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        s = Settings()
        assert s.log_level == "DEBUG"

    def test_loads_storage_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        s = Settings()
        assert s.storage_backend == "postgres"

    def test_loads_upload_flags(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("UPLOAD_ENABLED", "true")
        monkeypatch.setenv("DRIVE_FOLDER_ID", "folder-1")
        s = Settings()
        assert s.upload_enabled is True
        assert s.drive_folder_id == "folder-1"

    def test_loads_pdf_quality(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PDF_QUALITY", "high")
        s = Settings()
        assert s.pdf_quality == "high"


class TestSettingsValidation:
    def test_invalid_db_port_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_PORT", "not_a_number")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_quality_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PDF_QUALITY", "ultra")
        with pytest.raises(ValidationError):
            Settings()

    def test_unknown_storage_backend_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORAGE_BACKEND", "redis")
        with pytest.raises(ValidationError):
            Settings()
