"""Configuration management using Pydantic settings."""

import os
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root directory (parent of tempstore/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Reverse-domain prefix so leaked directories can be traced back to us
DEFAULT_DIRECTORY_PREFIX = "org.tempstore.TemporaryDirectory."


class ConfigurationError(Exception):
    """Raised when temporary storage configuration is invalid."""

    pass


class Settings(BaseSettings):
    """Temporary storage settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Directory placement
    TEMPSTORE_PARENT_DIR: Path | None = Field(
        default=None,
        description="Directory in which temporary directories are created (system temp dir if unset)"
    )
    TEMPSTORE_DIRECTORY_PREFIX: str = Field(
        default=DEFAULT_DIRECTORY_PREFIX,
        description="Prefix for temporary directory names"
    )
    TEMPSTORE_DIRECTORY_SUFFIX: str | None = Field(
        default=None,
        description="Suffix for temporary directory names (defaults to '.<pid>')"
    )
    TEMPSTORE_MAX_NAME_ATTEMPTS: int = Field(
        default=3,
        description="Number of fresh names tried when a directory name already exists"
    )

    # Permissions
    TEMPSTORE_DIRECTORY_MODE: int = Field(
        default=0o700,
        description="POSIX mode for temporary directories"
    )
    TEMPSTORE_FILE_MODE: int = Field(
        default=0o600,
        description="POSIX mode for temporary files"
    )

    # Lifecycle
    TEMPSTORE_CLEANUP_AT_EXIT: bool = Field(
        default=True,
        description="Remove the default temporary directory when the process exits"
    )

    @field_validator("TEMPSTORE_DIRECTORY_MODE", "TEMPSTORE_FILE_MODE", mode="before")
    @classmethod
    def parse_octal_mode(cls, value: Any) -> Any:
        """Read permission modes from the environment as octal (e.g. "700" or "0o700")."""
        if isinstance(value, str):
            return int(value.removeprefix("0o"), 8)
        return value

    @property
    def parent_dir(self) -> Path:
        """Directory that holds temporary directories."""
        if self.TEMPSTORE_PARENT_DIR is not None:
            return self.TEMPSTORE_PARENT_DIR
        return Path(tempfile.gettempdir())

    @property
    def directory_suffix(self) -> str:
        """Suffix for temporary directory names.

        Evaluated on every access so that a forked child names its directories
        after its own process id.
        """
        if self.TEMPSTORE_DIRECTORY_SUFFIX is not None:
            return self.TEMPSTORE_DIRECTORY_SUFFIX
        return f".{os.getpid()}"

    def validate_config(self) -> None:
        """Validate that the configuration is usable.

        Raises:
            ConfigurationError: If one or more settings are invalid
        """
        errors: list[str] = []

        if self.TEMPSTORE_MAX_NAME_ATTEMPTS < 1:
            errors.append("TEMPSTORE_MAX_NAME_ATTEMPTS must be at least 1")

        if not self.parent_dir.is_dir():
            errors.append(
                f"TEMPSTORE_PARENT_DIR {self.parent_dir} is not an existing directory"
            )

        for name, mode in (
            ("TEMPSTORE_DIRECTORY_MODE", self.TEMPSTORE_DIRECTORY_MODE),
            ("TEMPSTORE_FILE_MODE", self.TEMPSTORE_FILE_MODE),
        ):
            if not 0 <= mode <= 0o777:
                errors.append(f"{name} must be a permission mode between 0 and 0o777")

        if "/" in self.directory_suffix or "\0" in self.directory_suffix:
            errors.append("TEMPSTORE_DIRECTORY_SUFFIX must not contain path separators")

        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
