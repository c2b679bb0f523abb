from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal


def repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def resolve_repo_path(path_value: str) -> Path:
    path = Path(path_value)
    if path.is_absolute():
        return path
    return repo_root() / path


@dataclass(frozen=True)
class Settings:
    app_name: str
    environment: Literal['dev', 'prod', 'test']
    cors_origins: str
    config_path: str
    artifacts_dir: str
    log_level: str

    @property
    def config_file(self) -> Path:
        return resolve_repo_path(self.config_path)

    @property
    def artifacts_path(self) -> Path:
        return resolve_repo_path(self.artifacts_dir)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    environment = os.getenv('ENVIRONMENT', 'dev').strip().lower()
    if environment not in {'dev', 'prod', 'test'}:
        environment = 'dev'

    return Settings(
        app_name=os.getenv('APP_NAME', 'spot-config-api'),
        environment=environment,  # type: ignore[arg-type]
        cors_origins=os.getenv('CORS_ORIGINS', 'http://localhost:3000'),
        config_path=os.getenv('SPOT_CONFIG_PATH', 'script/input/config.json'),
        artifacts_dir=os.getenv('SPOT_ARTIFACTS_DIR', 'out'),
        log_level=os.getenv('LOG_LEVEL', 'INFO').strip().upper() or 'INFO'
    )


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
