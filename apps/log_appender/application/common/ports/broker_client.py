"""BrokerClient Port.

브로커 클라이언트 라이브러리의 connect / channel / declare / publish 인터페이스입니다.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Protocol

if TYPE_CHECKING:
    from apps.log_appender.application.common.dto.options import (
        ConnectOptions,
        ExchangeOptions,
        PublishOptions,
    )


class BrokerClient(Protocol):
    """브로커 클라이언트 인터페이스.

    구현체:
        - PikaBrokerClient (infrastructure/messaging/)

    모든 메서드는 실패 시 BrokerClientError를 발생시킵니다.
    """

    @property
    def is_open(self) -> bool:
        """연결이 열려 있는지 여부."""
        ...

    def connect(self, host: str, options: "ConnectOptions") -> None:
        """브로커 연결.

        Args:
            host: 브로커 주소
            options: 연결 옵션 (설정된 값만 사용)

        Raises:
            BrokerClientError: ErrorKind.CONNECT
        """
        ...

    def channel_open(self, channel_id: int, *, confirm_delivery: bool = False) -> None:
        """채널 열기.

        Raises:
            BrokerClientError: ErrorKind.CHANNEL_OPEN
        """
        ...

    def exchange_declare(
        self,
        channel_id: int,
        exchange: str,
        options: "ExchangeOptions",
    ) -> None:
        """Exchange 선언.

        Raises:
            BrokerClientError: ErrorKind.DECLARE
        """
        ...

    def publish(
        self,
        channel_id: int,
        routing_key: str,
        body: bytes,
        options: "PublishOptions",
    ) -> None:
        """메시지 발행.

        Raises:
            BrokerClientError: ErrorKind.PUBLISH
        """
        ...

    def close(self) -> None:
        """연결 종료."""
        ...


BrokerClientFactory = Callable[[], BrokerClient]
