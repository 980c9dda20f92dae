# =============================================================================
# Tests for configuration
# =============================================================================

import pytest

from justsend.config import (
    ATTACHMENTS_FOLDER_NAME,
    Config,
    ConfigError,
    get_xdg_config_home,
    get_xdg_data_home,
)


@pytest.fixture(autouse=True)
def xdg_dirs(tmp_path, monkeypatch):
    """Point the XDG directories into tmp_path."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    return tmp_path


class TestPaths:

    def test_xdg_locations(self, xdg_dirs):
        assert get_xdg_config_home() == xdg_dirs / "config" / "justsend"
        assert get_xdg_data_home() == xdg_dirs / "data" / "justsend"
        assert Config.config_file_path() == xdg_dirs / "config" / "justsend" / "config.toml"
        assert Config.database_path() == xdg_dirs / "data" / "justsend" / "justsend.db"

    def test_default_attachments_path(self, xdg_dirs):
        assert Config().attachments_path() == xdg_dirs / "data" / "justsend" / ATTACHMENTS_FOLDER_NAME

    def test_custom_attachments_path(self, tmp_path):
        config = Config()
        config.storage.attachments_dir = str(tmp_path / "files")
        assert config.attachments_path() == tmp_path / "files"


class TestLoad:

    def test_missing_file_gives_defaults(self, xdg_dirs):
        config = Config.load()

        assert config.api.base_url == "https://api.resend.com"
        assert config.request_timeout == 30.0
        assert config.attachment_soft_limit_bytes == 40 * 1024 * 1024
        assert get_xdg_data_home().is_dir()

    def test_reads_values(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text(
            '[api]\nbase_url = "http://localhost:3000/"\ntimeout = 0\n'
            '[composer]\nattachment_soft_limit_mb = 10\n'
        )

        config = Config.load(path)

        assert config.api.base_url == "http://localhost:3000"
        assert config.request_timeout is None
        assert config.attachment_soft_limit_bytes == 10 * 1024 * 1024

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[api\nbase_url = ")

        with pytest.raises(ConfigError):
            Config.load(path)

    def test_negative_timeout(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[api]\ntimeout = -1\n")

        with pytest.raises(ConfigError):
            Config.load(path)

    def test_save_then_load(self):
        config = Config()
        config.api.timeout = 5.0
        config.storage.attachments_dir = "~/mail-files"
        config.save()

        loaded = Config.load()
        assert loaded.api.timeout == 5.0
        assert loaded.storage.attachments_dir == "~/mail-files"
