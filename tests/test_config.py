"""
Tests for settings and .env loading.
"""

from pathlib import Path

from sitecms.config import DEFAULT_PORT, Settings
from sitecms.env import load_env


class TestSettings:
    """Test environment-driven configuration."""

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.port == DEFAULT_PORT
        assert settings.upload_mode == "images"
        assert settings.max_upload_bytes is None
        assert settings.strict_validation is False

    def test_env_values(self):
        settings = Settings.from_env({
            "SITECMS_POSTS_FILE": "/srv/posts.json",
            "SITECMS_UPLOAD_PREFIX": "media/",
            "SITECMS_UPLOAD_MODE": "Legacy",
            "SITECMS_MAX_UPLOAD_BYTES": "2048",
            "SITECMS_ALLOWED_EXTENSIONS": ".PNG, jpg",
            "SITECMS_STRICT_VALIDATION": "yes",
        })
        assert settings.posts_file == Path("/srv/posts.json")
        assert settings.upload_prefix == "/media"
        assert settings.upload_mode == "legacy"
        assert settings.max_upload_bytes == 2048
        assert settings.allowed_extensions == frozenset({"png", "jpg"})
        assert settings.strict_validation is True

    def test_port_override(self):
        assert Settings.from_env({"PORT": "8080"}).port == 8080
        assert Settings.from_env({"PORT": "8080", "SITECMS_PORT": "9000"}).port == 8080

    def test_override_skips_none(self):
        settings = Settings().override(port=5000, host=None)
        assert settings.port == 5000
        assert settings.host == Settings().host


class TestLoadEnv:
    """Test .env loading."""

    def test_missing_env_file(self, tmp_path):
        assert load_env(tmp_path / ".env") is False

    def test_loads_without_overriding(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("SITECMS_TEST_A=from-file\nSITECMS_TEST_B=from-file\n")
        monkeypatch.setenv("SITECMS_TEST_B", "from-env")
        monkeypatch.delenv("SITECMS_TEST_A", raising=False)

        load_env(env_file)

        import os
        assert os.environ["SITECMS_TEST_A"] == "from-file"
        assert os.environ["SITECMS_TEST_B"] == "from-env"
        monkeypatch.delenv("SITECMS_TEST_A")
