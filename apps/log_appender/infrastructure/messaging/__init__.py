"""Messaging Infrastructure.

RabbitMQ 연결 캐시와 pika 클라이언트 구현체입니다.
"""

from apps.log_appender.infrastructure.messaging.connection_registry import (
    CHANNEL_ID,
    ConnectionHandle,
    ConnectionRegistry,
)
from apps.log_appender.infrastructure.messaging.pika_client import PikaBrokerClient

__all__ = ["CHANNEL_ID", "ConnectionHandle", "ConnectionRegistry", "PikaBrokerClient"]
