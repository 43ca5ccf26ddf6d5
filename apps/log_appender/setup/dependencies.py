"""Dependency Injection.

Composition Root입니다.
연결 캐시(ConnectionRegistry)의 생명주기를 관리합니다.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from apps.log_appender.infrastructure.messaging.connection_registry import (
    ConnectionRegistry,
)
from apps.log_appender.presentation.handler import RabbitMQHandler
from apps.log_appender.setup.config import get_settings

if TYPE_CHECKING:
    from apps.log_appender.application.common.ports.broker_client import (
        BrokerClientFactory,
    )

_logger = logging.getLogger(__name__)


class Container:
    """의존성 컨테이너.

    애플리케이션 시작 시 init(), 종료 시 close()를 호출합니다.
    같은 컨테이너에서 만든 핸들러들은 연결을 공유합니다.
    """

    def __init__(self, client_factory: "BrokerClientFactory | None" = None) -> None:
        self._settings = get_settings()
        self._client_factory = client_factory
        self._registry: ConnectionRegistry | None = None

    def init(self) -> None:
        """의존성 초기화."""
        self._registry = ConnectionRegistry(self._client_factory)
        _logger.info(
            "Log appender container initialized",
            extra={"service_name": self._settings.service_name},
        )

    def build_handler(self, level: int | str = logging.NOTSET, **config: Any) -> RabbitMQHandler:
        """공유 registry를 사용하는 RabbitMQHandler 생성.

        Args:
            level: 핸들러 레벨
            **config: Appender 설정 맵
        """
        return RabbitMQHandler(level, registry=self.registry, **config)

    def close(self) -> None:
        """리소스 정리."""
        if self._registry is not None:
            self._registry.close()
            self._registry = None

    @property
    def registry(self) -> ConnectionRegistry:
        """Connection Registry."""
        if self._registry is None:
            raise RuntimeError("Container not initialized")
        return self._registry
