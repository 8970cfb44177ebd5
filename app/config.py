from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


BACKEND_LOCAL = "local"
BACKEND_FIREBASE = "firebase"


class ConfigError(RuntimeError):
    pass


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    backend: str = BACKEND_LOCAL
    firebase_api_key: str = ""
    firebase_project_id: str = ""
    collection: str = "todos"
    database_url: str = "sqlite:///storage/todos.db"
    http_timeout: float = 8.0
    token_refresh_seconds: float = 3000.0
    port: int = 8080
    storage_secret: str = ""
    log_dir: str = "data/logs"
    debug: bool = False
    no_cache: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        backend = _env("TODO_BACKEND", BACKEND_LOCAL).lower()
        if backend not in {BACKEND_LOCAL, BACKEND_FIREBASE}:
            raise ConfigError(f"TODO_BACKEND must be 'local' or 'firebase', got {backend!r}")
        settings = cls(
            backend=backend,
            firebase_api_key=_env("FIREBASE_API_KEY"),
            firebase_project_id=_env("FIREBASE_PROJECT_ID"),
            collection=_env("TODO_COLLECTION", "todos"),
            database_url=_env("TODO_DATABASE_URL", "sqlite:///storage/todos.db"),
            http_timeout=_env_float("TODO_HTTP_TIMEOUT", 8.0),
            token_refresh_seconds=_env_float("TODO_TOKEN_REFRESH_SECONDS", 3000.0),
            port=int(_env_float("TODO_PORT", 8080)),
            storage_secret=_env("TODO_STORAGE_SECRET"),
            # Set but empty disables the log file.
            log_dir=(os.getenv("TODO_LOG_DIR", "data/logs") or "").strip(),
            debug=_env("TODO_DEBUG") == "1",
            no_cache=_env("TODO_NO_CACHE") == "1",
        )
        settings.validate()
        return settings

    @property
    def log_path(self) -> Path | None:
        return Path(self.log_dir) if self.log_dir else None

    def validate(self) -> None:
        if self.backend == BACKEND_FIREBASE:
            missing = [
                name
                for name, value in (
                    ("FIREBASE_API_KEY", self.firebase_api_key),
                    ("FIREBASE_PROJECT_ID", self.firebase_project_id),
                )
                if not value
            ]
            if missing:
                raise ConfigError(f"Missing settings for firebase backend: {', '.join(missing)}")
        if not self.collection:
            raise ConfigError("TODO_COLLECTION must not be empty")
