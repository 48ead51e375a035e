from pathlib import Path

import pytest

from config.app_config import AppConfig
from exceptions import ConfigurationError


def test_from_env_reads_settings():
    config = AppConfig.from_env({
        "TOKEN_KEY": "k" * 16,
        "LOG_LEVEL": "debug",
        "STREAM_CHUNK_SIZE": "4096",
        "FILES_ROOT": "/srv/files",
    })

    assert config.token_key == "k" * 16
    assert config.log_level == "DEBUG"
    assert config.stream_chunk_size == 4096
    assert config.files_root == Path("/srv/files")
    assert config.log_dir is None


def test_from_env_defaults():
    config = AppConfig.from_env({})

    assert config.database_url == "sqlite://"
    assert config.admin_username == "admin"
    assert config.environment == "production"


def test_non_numeric_chunk_size():
    with pytest.raises(ConfigurationError):
        AppConfig.from_env({"STREAM_CHUNK_SIZE": "lots"})


def test_validate_requires_token_key():
    with pytest.raises(ConfigurationError) as exc_info:
        AppConfig().validate()
    assert exc_info.value.details == {"missing_keys": ["TOKEN_KEY"]}


@pytest.mark.parametrize("overrides", [
    {"stream_chunk_size": 10},
    {"log_level": "CHATTY"},
])
def test_validate_rejects_bad_values(overrides):
    with pytest.raises(ConfigurationError):
        AppConfig(token_key="secret", **overrides).validate()


def test_create_app_rejects_invalid_config():
    from main import create_app

    with pytest.raises(ConfigurationError):
        create_app(AppConfig())
