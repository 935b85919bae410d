import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILENAME = ".inkwell.toml"


def _deep_merge(destination: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Merge source into destination, with source values overwriting."""
    for key, value in source.items():
        if isinstance(value, Mapping) and key in destination and isinstance(destination[key], Mapping):
            destination[key] = _deep_merge(dict(destination[key]), dict(value))
        else:
            destination[key] = value
    return destination


class GitHubSettings(BaseModel):
    """Backing repository and API access."""

    token: SecretStr | None = Field(default=None, description="Personal access token")
    owner: str | None = Field(default=None, description="Repository owner login (derived from the token when unset)")
    repository: str = Field(default="inkwell-posts", description="Repository holding posts and analytics")
    branch: str = Field(default="main", description="Branch used for raw URLs")
    description: str = Field(default="Posts created with Inkwell", description="Description of a newly created repository")
    api_url: str = Field(default="https://api.github.com", description="REST API origin")
    raw_url: str = Field(default="https://raw.githubusercontent.com", description="Raw content origin")
    timeout: float = Field(default=30.0, description="HTTP timeout in seconds")


class SharingSettings(BaseModel):
    """Public share URLs."""

    app_url: str = Field(default="http://localhost:8080", description="Origin of the reading application")


class InkwellConfig(BaseSettings):
    """Root configuration for Inkwell.

    Supports environment variable overrides with the pattern:
    INKWELL_SECTION__KEY (e.g., INKWELL_GITHUB__TOKEN)
    """

    github: GitHubSettings = Field(default_factory=GitHubSettings)
    sharing: SharingSettings = Field(default_factory=SharingSettings)

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="INKWELL_",
        env_nested_delimiter="__",
    )

    @classmethod
    def load(cls, root: Path | None = None) -> "InkwellConfig":
        """Loads configuration from .inkwell.toml and environment variables.

        Priority (highest to lowest):
        1. Environment variables (INKWELL_SECTION__KEY)
        2. Config file (.inkwell.toml)
        3. Defaults
        """
        root_path = root if root is not None else Path.cwd()
        config_file = root_path / CONFIG_FILENAME

        file_settings: dict[str, Any] = {}
        if config_file.is_file():
            with config_file.open("rb") as f:
                file_settings = tomllib.load(f)

        env_settings = cls().model_dump(exclude_unset=True)
        merged = _deep_merge(file_settings, env_settings)
        return cls.model_validate(merged)
