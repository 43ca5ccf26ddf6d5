"""RabbitMQ Log Appender.

logging 레코드를 RabbitMQ exchange로 발행하는 핸들러입니다.

Usage:
    import logging

    from apps.log_appender import ConnectionRegistry, RabbitMQHandler

    registry = ConnectionRegistry()
    handler = RabbitMQHandler(exchange="logs", routing_key="%p>%c", registry=registry)
    logging.getLogger().addHandler(handler)
"""

from apps.log_appender.infrastructure.messaging.connection_registry import (
    ConnectionRegistry,
)
from apps.log_appender.presentation.handler import RabbitMQHandler

__all__ = ["ConnectionRegistry", "RabbitMQHandler"]
