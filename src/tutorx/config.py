"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if 'server' in data:
            flattened['host'] = data['server'].get('host')
            flattened['port'] = data['server'].get('port')
        if 'openai' in data:
            openai_cfg = data['openai']
            flattened['default_model'] = openai_cfg.get('default_model')
            flattened['pro_model'] = openai_cfg.get('pro_model')
            flattened['tts_model'] = openai_cfg.get('tts_model')
            flattened['tts_voices'] = openai_cfg.get('tts_voices')
            flattened['default_voice'] = openai_cfg.get('default_voice')
        if 'auth' in data:
            flattened['jwt_algorithm'] = data['auth'].get('jwt_algorithm')
            flattened['access_token_expire_minutes'] = (
                data['auth'].get('access_token_expire_minutes')
            )
        if 'billing' in data:
            flattened['approve_upgrades'] = data['billing'].get('approve_upgrades')

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI (None keeps the app up with AI features offline)
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    default_model: str = Field(default="gpt-4o-mini")
    pro_model: str = Field(default="gpt-4o")
    tts_model: str = Field(default="gpt-4o-mini-tts")
    tts_voices: list[str] = Field(
        default_factory=lambda: ["alloy", "coral", "echo", "nova", "sage"]
    )
    default_voice: str = Field(default="coral")

    # Authentication
    jwt_secret_key: str = Field(default="change-me")
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=120)

    # Billing
    approve_upgrades: bool = Field(default=True)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Paths
    project_root: Path = Field(default_factory=lambda: _find_project_root())

    @property
    def profiles_dir(self) -> Path:
        d = self.project_root / "data" / "profiles"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def credentials_dir(self) -> Path:
        d = self.project_root / "data" / "credentials"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()
