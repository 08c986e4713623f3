"""Configuration models and loading."""

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

CONFIG_DIR = Path.home() / ".config" / "cors-relay"
CONFIG_FILE = CONFIG_DIR / "config.json"

PORT_ENV = "PORT"


class ProxySettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False


class RelaySettings(BaseModel):
    timeout: float = 30.0
    max_redirects: int = 5
    user_agent: str = "CORS-Proxy-Server/1.0"
    max_body_size: int = 50 * 1024 * 1024  # 50MB


class CacheSettings(BaseModel):
    enabled: bool = True
    ttl: float = 3600.0
    # None keeps expiry purely time-based
    max_entries: int | None = None


class CorsSettings(BaseModel):
    allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    allow_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"]
    )
    allow_headers: list[str] = Field(
        default_factory=lambda: ["Content-Type", "Authorization", "X-Requested-With", "Accept"]
    )


class LoggingSettings(BaseModel):
    log_dir: str = "logs"
    request_logs: bool = False


class Config(BaseModel):
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    relay: RelaySettings = Field(default_factory=RelaySettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_config(config_file: Path = CONFIG_FILE) -> Config:
    """Load configuration from JSON file, creating default if needed.

    The ``PORT`` environment variable, when set, overrides ``proxy.port``.
    """
    if not config_file.exists():
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config = Config()
        config_file.write_text(config.model_dump_json(indent=2))
    else:
        try:
            data = json.loads(config_file.read_text())
            config = Config.model_validate(data)
        except (json.JSONDecodeError, ValidationError):
            # Backup corrupted config and recreate default
            backup = config_file.with_suffix(".json.bak")
            config_file.rename(backup)
            config = Config()
            config_file.write_text(config.model_dump_json(indent=2))

    return _apply_env_overrides(config)


def _apply_env_overrides(config: Config) -> Config:
    port = os.environ.get(PORT_ENV, "").strip()
    if port.isdigit():
        config.proxy.port = int(port)
    return config
