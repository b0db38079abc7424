"""Tests for settings."""

import pytest

from meeting_summary.config import Settings


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("MAX_CHARS", "CHUNK_MODEL", "AGGREGATE_MODEL", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)
        assert settings.max_chars == 2500
        assert settings.chunk_model == "gpt-3.5-turbo"
        assert settings.aggregate_model == "gpt-4"
        assert settings.transcribe_model == "whisper-1"
        assert settings.log_level == "WARNING"

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_CHARS", "1200")
        monkeypatch.setenv("AGGREGATE_MODEL", "gpt-4o")

        settings = Settings(_env_file=None)
        assert settings.max_chars == 1200
        assert settings.aggregate_model == "gpt-4o"

    def test_env_file(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("OPENAI_API_KEY=sk-from-file\nMAX_WORKERS=2\n")

        settings = Settings(_env_file=env_file)
        assert settings.openai_api_key == "sk-from-file"
        assert settings.max_workers == 2
