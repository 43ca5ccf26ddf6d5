"""Connection Registry.

(host, 연결 옵션) 별로 브로커 연결을 공유하는 캐시입니다.

| 컴포넌트 | 책임 |
|---------|------|
| ConnectionRegistry | 캐시 키 계산, 연결 생성/조회/무효화 |
| ConnectionHandle | 채널 1번에 대한 declare / publish 직렬화 |

전역 상태가 아니라 주입 가능한 객체입니다.
애플리케이션 시작 시 생성하고 종료 시 close() 합니다.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from apps.log_appender.application.common.exceptions import BrokerClientError
from apps.log_appender.application.common.result import BrokerResult
from apps.log_appender.infrastructure.messaging.pika_client import PikaBrokerClient

if TYPE_CHECKING:
    from apps.log_appender.application.common.dto.options import (
        ConnectOptions,
        ExchangeOptions,
        PublishOptions,
    )
    from apps.log_appender.application.common.ports.broker_client import (
        BrokerClient,
        BrokerClientFactory,
    )

logger = logging.getLogger(__name__)

CHANNEL_ID = 1

CacheKey = tuple[str, tuple[tuple[str, Any], ...]]


def make_cache_key(host: str, options: "ConnectOptions") -> CacheKey:
    """캐시 키 계산 (host + 이름순 정렬된 설정 옵션)."""
    return (host, options.cache_key())


class ConnectionHandle:
    """캐시된 브로커 연결.

    채널은 동시 사용이 안전하지 않으므로
    declare / publish는 핸들 소유 lock으로 직렬화합니다.
    """

    def __init__(self, key: CacheKey, client: "BrokerClient") -> None:
        self._key = key
        self._client = client
        self._lock = threading.Lock()
        self._valid = True

    @property
    def key(self) -> CacheKey:
        return self._key

    @property
    def client(self) -> "BrokerClient":
        return self._client

    @property
    def is_valid(self) -> bool:
        return self._valid

    def declare_exchange(self, exchange: str, options: "ExchangeOptions") -> BrokerResult:
        """Exchange 선언.

        Returns:
            BrokerResult: SUCCESS 또는 FAILED(DECLARE)
        """
        with self._lock:
            try:
                self._client.exchange_declare(CHANNEL_ID, exchange, options)
            except BrokerClientError as e:
                return BrokerResult.failure(e.kind, e.message)
        return BrokerResult.success()

    def publish(
        self,
        routing_key: str,
        payload: bytes,
        options: "PublishOptions",
    ) -> BrokerResult:
        """메시지 발행.

        Returns:
            BrokerResult: SUCCESS 또는 FAILED(PUBLISH)
        """
        with self._lock:
            try:
                self._client.publish(CHANNEL_ID, routing_key, payload, options)
            except BrokerClientError as e:
                return BrokerResult.failure(e.kind, e.message)
        return BrokerResult.success()

    def close(self) -> None:
        """핸들 무효화 및 연결 종료."""
        with self._lock:
            self._valid = False
            self._client.close()

    def __repr__(self) -> str:
        state = "valid" if self._valid else "invalid"
        return f"<ConnectionHandle host={self._key[0]!r} {state}>"


class ConnectionRegistry:
    """브로커 연결 캐시.

    같은 (host, 연결 옵션)을 쓰는 Appender들은 하나의 물리 연결을 공유합니다.
    유효성 검사나 TTL은 없으며, 무효화는 invalidate() 호출로만 일어납니다.
    """

    def __init__(self, client_factory: "BrokerClientFactory | None" = None) -> None:
        """Initialize.

        Args:
            client_factory: BrokerClient 생성 함수 (기본: PikaBrokerClient)
        """
        self._client_factory = client_factory or PikaBrokerClient
        self._handles: dict[CacheKey, ConnectionHandle] = {}
        self._lock = threading.Lock()

    def acquire(self, host: str, options: "ConnectOptions") -> BrokerResult:
        """연결 조회 또는 생성.

        Args:
            host: 브로커 주소
            options: 연결 옵션

        Returns:
            BrokerResult: SUCCESS(value=ConnectionHandle) 또는 FAILED(CONNECT/CHANNEL_OPEN)
        """
        key = make_cache_key(host, options)

        with self._lock:
            handle = self._handles.get(key)
            if handle is not None and handle.is_valid:
                return BrokerResult.success(handle)

            client = self._client_factory()
            try:
                client.connect(host, options)
                client.channel_open(CHANNEL_ID, confirm_delivery=bool(options.confirm_delivery))
            except BrokerClientError as e:
                client.close()
                return BrokerResult.failure(e.kind, e.message)

            handle = ConnectionHandle(key, client)
            self._handles[key] = handle

        logger.info("RabbitMQ connection opened", extra={"broker_host": host})
        return BrokerResult.success(handle)

    def invalidate(self, handle: ConnectionHandle) -> None:
        """연결 무효화.

        캐시에 다른 핸들이 이미 들어가 있으면 그 핸들은 유지합니다.
        """
        with self._lock:
            if self._handles.get(handle.key) is handle:
                del self._handles[handle.key]
        handle.close()
        logger.info("RabbitMQ connection invalidated", extra={"broker_host": handle.key[0]})

    def close(self) -> None:
        """모든 연결 종료."""
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            handle.close()
        if handles:
            logger.debug("Connection registry closed", extra={"connections": len(handles)})

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._handles

