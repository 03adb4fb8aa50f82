"""
Configuration settings for the SSO directory cache.

This module provides a settings class with support for loading
configuration from TOML files and environment variables.
"""

from functools import lru_cache
from pathlib import Path
from urllib.parse import quote

from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)


class Settings(BaseSettings):
    """Main settings class for the directory cache.

    Values come from ``SSO_DIRECTORY_*`` environment variables first,
    then from ``settings.toml`` / ``settings.custom.toml``.
    """

    model_config = SettingsConfigDict(
        toml_file=["settings.toml", "settings.custom.toml"],
        env_prefix="SSO_DIRECTORY_",
        extra="ignore",
    )

    # Server settings
    port: int = 8000
    host: str = "127.0.0.1"
    root_url: str = "/"
    debug: bool = False

    # Remote SSO service
    sso_server_url: str = "http://localhost:8080/sso/"
    application_name: str = ""
    application_password: str = ""
    page_size: int = 100

    # HTTP client settings
    http_max_connections: int = 20
    http_connect_timeout: float = 5.0
    http_socket_timeout: float = 20.0

    # Proxy settings
    http_proxy_host: str | None = None
    http_proxy_port: int = 0
    http_proxy_username: str | None = None
    http_proxy_password: str | None = None

    # Cache settings
    users_cache_ttl_seconds: int = 3600

    # Logging settings
    log_level: str = "INFO"
    log_to_file: bool = False
    log_dir: str | None = None  # If None, will use ~/sso_directory/logs
    log_rotation: str = "20 MB"
    log_retention: str = "1 week"
    log_format: str | None = None  # Use default if None

    @property
    def refresh_interval(self) -> int:
        """Seconds between two directory refreshes."""
        return self.users_cache_ttl_seconds

    @property
    def proxy_url(self) -> str | None:
        """Build the proxy URL for httpx, or None when no proxy is configured."""
        if not self.http_proxy_host or not self.http_proxy_host.strip() or self.http_proxy_port <= 0:
            return None

        credentials = ""
        if (self.http_proxy_username or "").strip() or (self.http_proxy_password or "").strip():
            username = quote(self.http_proxy_username or "", safe="")
            password = quote(self.http_proxy_password or "", safe="")
            credentials = f"{username}:{password}@"

        return f"http://{credentials}{self.http_proxy_host.strip()}:{self.http_proxy_port}"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the sources for settings.

        Priority order: init arguments, environment variables, then TOML config files
        """
        return init_settings, env_settings, TomlConfigSettingsSource(settings_cls)

    def get_log_dir(self) -> Path:
        """Get the log directory path.

        Returns:
            Path to the log directory. Uses log_dir if specified,
            otherwise ``~/sso_directory/logs``.
        """
        if self.log_dir:
            return Path(self.log_dir)
        return Path.home() / "sso_directory" / "logs"


@lru_cache
def get_settings() -> Settings:
    """Get the settings instance, with caching.

    Returns:
        Cached Settings instance
    """
    return Settings()


# Create a global settings instance for easy imports
settings = get_settings()
