"""Publish Log Event Command.

로그 이벤트를 RabbitMQ exchange로 발행하는 Use Case입니다.

Flow:
    execute(event)
        │
        ├── 핸들 없음 → acquire (재연결 1회)
        │       └── 실패: SKIPPED (발행 안 함)
        │
        ├── routing key 계산 (%c, %p)
        │
        └── publish
                ├── 성공: SUCCESS
                └── 실패: 핸들 무효화 → FAILED (메시지 버림)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apps.log_appender.application.common.result import BrokerResult
from apps.log_appender.application.common.routing_key import RoutingKeyTemplate

if TYPE_CHECKING:
    from apps.log_appender.application.common.dto.log_event import LogEvent
    from apps.log_appender.application.common.dto.options import AppenderOptions
    from apps.log_appender.infrastructure.messaging.connection_registry import (
        ConnectionHandle,
        ConnectionRegistry,
    )

logger = logging.getLogger(__name__)


class PublishLogEventCommand:
    """로그 이벤트 발행 Command.

    Appender 하나의 연결 핸들을 보관하고,
    발행 실패 시 핸들을 무효화해 다음 호출에서 재연결하도록 합니다.
    """

    def __init__(self, registry: "ConnectionRegistry", options: "AppenderOptions") -> None:
        """Initialize.

        Args:
            registry: 연결 캐시 (DI)
            options: Appender 설정
        """
        self._registry = registry
        self._options = options
        self._routing_key = RoutingKeyTemplate(options.routing_key)
        self._handle: ConnectionHandle | None = None

    @property
    def options(self) -> "AppenderOptions":
        return self._options

    @property
    def routing_key(self) -> RoutingKeyTemplate:
        return self._routing_key

    @property
    def handle(self) -> "ConnectionHandle | None":
        """현재 핸들 (무효화된 핸들은 None)."""
        if self._handle is not None and not self._handle.is_valid:
            self._handle = None
        return self._handle

    def open(self) -> BrokerResult:
        """연결 수립 및 exchange 선언 (declare_exchange 설정 시).

        exchange 선언 실패는 연결을 무효화하지 않습니다.

        Returns:
            BrokerResult: 연결 실패(CONNECT/CHANNEL_OPEN), 선언 실패(DECLARE) 또는 SUCCESS
        """
        result = self._connect()
        if not result.is_success or not self._options.declare_exchange:
            return result

        exchange = self._options.publish.exchange or ""
        declared = self._handle.declare_exchange(exchange, self._options.exchange)
        if declared.is_success:
            logger.debug("Exchange declared", extra={"exchange": exchange})
        return declared

    def execute(self, event: "LogEvent") -> BrokerResult:
        """로그 이벤트 발행.

        Args:
            event: 로그 이벤트

        Returns:
            BrokerResult: SUCCESS / SKIPPED / FAILED(PUBLISH)
        """
        if self.handle is None:
            reconnected = self._connect()
            if not reconnected.is_success:
                return BrokerResult.skipped(reconnected.message)

        handle = self._handle
        routing_key = self._routing_key.render(event)
        result = handle.publish(routing_key, event.payload, self._options.publish)

        if result.is_failure:
            # 다음 호출에서 재연결
            self._registry.invalidate(handle)
            self._handle = None
        return result

    def release(self) -> None:
        """핸들 참조 해제 (연결은 registry가 소유)."""
        self._handle = None

    def _connect(self) -> BrokerResult:
        result = self._registry.acquire(self._options.host, self._options.connect)
        self._handle = result.value if result.is_success else None
        return result
