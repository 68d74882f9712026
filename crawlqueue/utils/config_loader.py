import os
from typing import Any, Dict

import yaml

from pydantic_settings import BaseSettings, SettingsConfigDict

from crawlqueue.utils.db_utils import build_postgres_url
from crawlqueue.utils.env_loader import load_environment


DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "../config/config.yaml")


class Config(BaseSettings):
    database_url: str
    log_level: str = "INFO"
    log_path: str = "/data/logs/crawlqueue.log"
    metrics_port: int = 8000
    metrics_interval: float = 2.0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def _load_yaml_config(path: str | None = None) -> Dict[str, Any]:
    config_path = path or os.getenv("CRAWLQUEUE_CONFIG") or DEFAULT_CONFIG_PATH
    if not os.path.exists(config_path):
        return {}

    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def _database_url_from_env() -> str | None:
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    # legacy POSTGRES_* variables, only when at least the host is given
    host = os.getenv("POSTGRES_HOST")
    if not host:
        return None
    return build_postgres_url(
        os.getenv("POSTGRES_USER", "crawler"),
        os.getenv("POSTGRES_PASSWORD", "postgres"),
        host,
        os.getenv("POSTGRES_PORT", "5432"),
        os.getenv("POSTGRES_DB", "crawler"),
    )


def load_config(path: str | None = None) -> Config:
    load_environment()
    file_data = _load_yaml_config(path)
    queue_settings: Dict[str, Any] = file_data.get("queue") or {}

    # environment -> config file -> default
    database_url = (
        _database_url_from_env()
        or queue_settings.get("database_url")
        or "sqlite://db.sqlite3"
    )

    overrides: Dict[str, Any] = {}
    for key in ("log_level", "log_path", "metrics_port", "metrics_interval"):
        if os.getenv(key.upper()) is None and queue_settings.get(key) is not None:
            overrides[key] = queue_settings[key]

    return Config(database_url=database_url, **overrides)
