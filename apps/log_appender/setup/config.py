"""Configuration.

환경 변수 기반 설정입니다.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Log Appender 설정.

    환경 변수에서 로드됩니다.
    RabbitMQ 핸들러 설정은 ``RABBITMQ_LOG_`` 접두사를 사용합니다.

    예시:
        RABBITMQ_LOG_HOST → host
        RABBITMQ_LOG_EXCHANGE → exchange
    """

    # Logging
    log_level: str = Field("INFO", validation_alias=AliasChoices("LOG_LEVEL"))

    # Service
    service_name: str = Field("log-appender", validation_alias=AliasChoices("SERVICE_NAME"))
    service_version: str = Field("1.0.0", validation_alias=AliasChoices("SERVICE_VERSION"))
    environment: str = Field("dev", validation_alias=AliasChoices("ENVIRONMENT", "ENV"))

    # RabbitMQ handler
    enabled: bool = False
    level: str = "INFO"
    host: str = "localhost"
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    vhost: Optional[str] = None
    exchange: Optional[str] = None
    routing_key: str = "%c"
    declare_exchange: bool = False
    exchange_type: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="RABBITMQ_LOG_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    def handler_config(self) -> dict[str, Any]:
        """RabbitMQHandler 설정 맵 (설정된 값만)."""
        config: dict[str, Any] = {
            "host": self.host,
            "routing_key": self.routing_key,
            "declare_exchange": self.declare_exchange,
        }
        for name in ("port", "user", "password", "vhost", "exchange", "exchange_type"):
            value = getattr(self, name)
            if value is not None:
                config[name] = value
        return config


@lru_cache
def get_settings() -> Settings:
    """설정 싱글톤 반환."""
    return Settings()
