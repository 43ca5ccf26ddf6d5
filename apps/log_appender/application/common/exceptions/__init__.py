"""Application exceptions."""

from apps.log_appender.application.common.exceptions.base import ApplicationError
from apps.log_appender.application.common.exceptions.broker import BrokerClientError

__all__ = ["ApplicationError", "BrokerClientError"]
