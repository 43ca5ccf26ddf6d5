"""Presentation Layer.

logging 프레임워크에서의 Presentation Layer:
- RabbitMQHandler: LogRecord → LogEvent 변환, Command 호출, 실패 보고
"""

from apps.log_appender.presentation.handler import RabbitMQHandler

__all__ = ["RabbitMQHandler"]
