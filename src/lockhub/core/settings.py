"""Service settings loader."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from lockhub.utils.env import env_int


class StoreSettings(BaseModel):
    backend: Literal["redis", "memory"] = "redis"
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "lock:"
    default_ttl: int = Field(default=30, gt=0)
    socket_timeout: float = Field(default=5.0, gt=0)


class ReconnectSettings(BaseModel):
    """Linear backoff: the n-th failure waits min(n * retry_step_ms, max_delay_ms)."""

    max_retries: int = Field(default=10, ge=1)
    retry_step_ms: int = Field(default=50, ge=0)
    max_delay_ms: int = Field(default=500, ge=0)


class WaiterSettings(BaseModel):
    backoff_ms: int = Field(default=200, gt=0)
    ttl: int = Field(default=5, gt=0)
    timeout_ms: int = Field(default=5000, ge=0)


class ServiceSettings(BaseModel):
    store: StoreSettings = Field(default_factory=StoreSettings)
    reconnect: ReconnectSettings = Field(default_factory=ReconnectSettings)
    waiter: WaiterSettings = Field(default_factory=WaiterSettings)
    groups: Dict[str, List[str]] = Field(default_factory=dict)
    audit_log_path: Optional[Path] = None

    @classmethod
    def from_file(cls, path: Path) -> "ServiceSettings":
        data = yaml.safe_load(path.read_text()) or {}
        try:
            settings = cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid service settings: {exc}") from exc
        if settings.audit_log_path and not settings.audit_log_path.is_absolute():
            settings.audit_log_path = (path.parent / settings.audit_log_path).resolve()
        return settings

    def with_env_overrides(self) -> "ServiceSettings":
        """Apply REDIS_URL, LOCKHUB_STORE and LOCKHUB_DEFAULT_TTL on top of the file."""
        store_update: Dict[str, object] = {}
        redis_url = os.getenv("REDIS_URL")
        if redis_url:
            store_update["redis_url"] = redis_url
        backend = os.getenv("LOCKHUB_STORE", "").strip().lower()
        if backend:
            if backend not in ("redis", "memory"):
                raise ValueError(f"Unsupported LOCKHUB_STORE backend: {backend}")
            store_update["backend"] = backend
        default_ttl = env_int("LOCKHUB_DEFAULT_TTL")
        if default_ttl is not None:
            if default_ttl <= 0:
                raise ValueError("LOCKHUB_DEFAULT_TTL must be positive")
            store_update["default_ttl"] = default_ttl
        if not store_update:
            return self
        return self.model_copy(update={"store": self.store.model_copy(update=store_update)})


def load_settings(path: Optional[Path] = None) -> ServiceSettings:
    """Settings from ``path`` (or defaults if it is missing) plus the environment."""
    if path is not None and path.exists():
        settings = ServiceSettings.from_file(path)
    else:
        settings = ServiceSettings()
    return settings.with_env_overrides()
