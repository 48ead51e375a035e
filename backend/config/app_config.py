"""
Application Configuration

Settings are read from environment variables once at startup and exposed as an
immutable object. Endpoints and validators receive it through app.state rather
than reading the environment themselves.
"""
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from constants import SettingKeys, StreamConfig
from exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _parse_int(raw: Optional[str], default: int, key: str) -> int:
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class AppConfig:
    """
    Application configuration loaded from environment variables.

    Attributes:
        token_key: Secret used to sign login tokens
        admin_username: Account accepted by the admin login endpoint
        admin_password: Password for admin_username (empty disables login)
        log_level: Root log level name
        log_dir: Directory for rotating log files (None disables file logging)
        stream_chunk_size: Bytes per body frame when writing binary payloads
        files_root: Directory served by the download endpoints
        database_url: SQLAlchemy URL for the example persistence layer
        environment: Deployment environment name
    """

    token_key: str = ""
    admin_username: str = "admin"
    admin_password: str = ""
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    stream_chunk_size: int = StreamConfig.CHUNK_SIZE
    files_root: Path = Path("files")
    database_url: str = "sqlite://"
    environment: str = "production"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        """
        Build a config from the given mapping (defaults to os.environ).

        Raises:
            ConfigurationError: If a numeric setting cannot be parsed
        """
        env = os.environ if environ is None else environ
        log_dir = env.get(SettingKeys.LOG_DIR)

        return cls(
            token_key=env.get(SettingKeys.TOKEN_KEY, ""),
            admin_username=env.get(SettingKeys.ADMIN_USERNAME, "admin"),
            admin_password=env.get(SettingKeys.ADMIN_PASSWORD, ""),
            log_level=env.get(SettingKeys.LOG_LEVEL, "INFO").upper(),
            log_dir=Path(log_dir) if log_dir else None,
            stream_chunk_size=_parse_int(
                env.get(SettingKeys.STREAM_CHUNK_SIZE),
                StreamConfig.CHUNK_SIZE,
                SettingKeys.STREAM_CHUNK_SIZE,
            ),
            files_root=Path(env.get(SettingKeys.FILES_ROOT, "files")),
            database_url=env.get(SettingKeys.DATABASE_URL, "sqlite://"),
            environment=env.get(SettingKeys.ENVIRONMENT, "production"),
        )

    def validate(self) -> None:
        """
        Validate settings that have no safe default.

        Raises:
            ConfigurationError: If required settings are missing or out of range
        """
        if not self.token_key:
            raise ConfigurationError(
                f"{SettingKeys.TOKEN_KEY} environment variable is required",
                missing_keys=[SettingKeys.TOKEN_KEY],
            )

        if not (StreamConfig.MIN_CHUNK_SIZE <= self.stream_chunk_size <= StreamConfig.MAX_CHUNK_SIZE):
            raise ConfigurationError(
                f"{SettingKeys.STREAM_CHUNK_SIZE} must be between "
                f"{StreamConfig.MIN_CHUNK_SIZE} and {StreamConfig.MAX_CHUNK_SIZE}"
            )

        if self.log_level not in logging.getLevelNamesMapping():
            raise ConfigurationError(f"Unknown log level: {self.log_level}")

        logger.debug(f"Configuration validated for environment '{self.environment}'")

    @property
    def is_development(self) -> bool:
        return self.environment == "development"
