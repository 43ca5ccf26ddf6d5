"""Application Ports.

Infrastructure 계층의 인터페이스를 정의합니다.
"""

from apps.log_appender.application.common.ports.broker_client import (
    BrokerClient,
    BrokerClientFactory,
)

__all__ = ["BrokerClient", "BrokerClientFactory"]
