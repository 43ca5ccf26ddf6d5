"""RabbitMQ Logging Handler.

logging.Handler 구현체로, 로그 레코드를 RabbitMQ exchange로 발행합니다.

Usage (dictConfig):
    {
        "handlers": {
            "rabbitmq": {
                "class": "apps.log_appender.RabbitMQHandler",
                "exchange": "logs",
                "routing_key": "%p>%c",
                "registry": "ext://myapp.container.registry",
            },
        },
    }

Architecture:
    LogRecord
        │
        │ LogEvent(category, level, message)
        ▼
    PublishLogEventCommand (Application)
        │
        │ BrokerResult
        ▼
    RabbitMQHandler
        │
        └── FAILED: ERROR 로그 후 계속 (예외 전파 없음)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from apps.log_appender.application.commands.publish_log_event import (
    PublishLogEventCommand,
)
from apps.log_appender.application.common.dto.log_event import LogEvent
from apps.log_appender.application.common.dto.options import AppenderOptions
from apps.log_appender.infrastructure.messaging.connection_registry import (
    ConnectionRegistry,
)

if TYPE_CHECKING:
    from apps.log_appender.application.common.result import BrokerResult
    from apps.log_appender.infrastructure.messaging.connection_registry import (
        ConnectionHandle,
    )

logger = logging.getLogger(__name__)

# 발행하지 않는 로거 (진단 로그 / 클라이언트 라이브러리 로그의 재귀 방지)
INTERNAL_LOGGERS = ("apps.log_appender", "pika")


def _is_external_record(record: logging.LogRecord) -> bool:
    for name in INTERNAL_LOGGERS:
        if record.name == name or record.name.startswith(name + "."):
            return False
    return True


class RabbitMQHandler(logging.Handler):
    """RabbitMQ 로그 핸들러 (Appender).

    - category: ``record.name``
    - level: ``record.levelname``
    - message: ``self.format(record)``

    registry를 주입하면 같은 연결 파라미터를 쓰는 핸들러끼리 연결을 공유합니다.
    생략하면 전용 registry를 만들고 close() 시 함께 닫습니다.
    """

    def __init__(
        self,
        level: int | str = logging.NOTSET,
        *,
        registry: ConnectionRegistry | None = None,
        **config: Any,
    ) -> None:
        """Initialize.

        Args:
            level: 핸들러 레벨
            registry: 연결 캐시 (생략 시 전용 registry)
            **config: Appender 설정 맵 (host, exchange, routing_key, ...)

        Raises:
            pydantic.ValidationError: 설정 값이 잘못된 경우
        """
        super().__init__(level)
        options = AppenderOptions.from_config(config)

        self._owns_registry = registry is None
        self._registry = registry if registry is not None else ConnectionRegistry()
        self._command = PublishLogEventCommand(self._registry, options)
        self.addFilter(_is_external_record)

        if options.publish.immediate:
            logger.warning(
                "immediate flag is not supported by RabbitMQ and is ignored",
                extra={"appender": self._identity},
            )

        result = self._command.open()
        if result.is_failure:
            self._report(f"Error creating {type(self).__name__}", result)

    @property
    def options(self) -> AppenderOptions:
        return self._command.options

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def connection_handle(self) -> "ConnectionHandle | None":
        """현재 사용 중인 연결 핸들 (없으면 None)."""
        return self._command.handle

    def emit(self, record: logging.LogRecord) -> None:
        """로그 레코드 발행.

        연결이 없으면 재연결을 한 번 시도하고, 실패하면 아무 것도 하지 않습니다.
        발행 실패 시 메시지는 버려지고 다음 호출에서 재연결합니다.
        """
        try:
            event = LogEvent(
                category=record.name,
                level=record.levelname,
                message=self.format(record),
            )
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)
            return

        try:
            result = self._command.execute(event)
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)
            return

        if result.is_failure:
            self._report(f"Error logging to RabbitMQ via {type(self).__name__}", result)
        elif result.is_skipped:
            logger.debug(
                "No RabbitMQ connection, log event dropped",
                extra={"appender": self._identity, "error": result.message},
            )

    def close(self) -> None:
        """핸들 해제 (전용 registry면 연결 종료)."""
        self.acquire()
        try:
            self._command.release()
            if self._owns_registry:
                self._registry.close()
        finally:
            self.release()
        super().close()

    @property
    def _identity(self) -> str:
        return self.name or type(self).__name__

    def _report(self, message: str, result: "BrokerResult") -> None:
        logger.error(
            message,
            extra={
                "appender": self._identity,
                "broker_host": self.options.host,
                "error_kind": result.error_kind.value if result.error_kind else None,
                "error": result.message,
            },
        )

    def __repr__(self) -> str:
        level = logging.getLevelName(self.level)
        exchange = self.options.publish.exchange or ""
        return f"<{type(self).__name__} {self.options.host}/{exchange} ({level})>"
