"""Pika Broker Client.

BrokerClient 포트의 pika(BlockingConnection) 구현체입니다.

설정되지 않은 옵션은 pika 기본값을 그대로 사용합니다.
"""

from __future__ import annotations

import logging
import ssl
from typing import TYPE_CHECKING, Any

import pika
from pika.exceptions import AMQPError

from apps.log_appender.application.common.exceptions import BrokerClientError
from apps.log_appender.application.common.result import ErrorKind

if TYPE_CHECKING:
    from pika.adapters.blocking_connection import BlockingChannel, BlockingConnection

    from apps.log_appender.application.common.dto.options import (
        ConnectOptions,
        ExchangeOptions,
        PublishOptions,
    )

logger = logging.getLogger(__name__)

# connect 옵션 이름 → pika.ConnectionParameters 인자
_CONNECTION_PARAMETERS = {
    "port": "port",
    "vhost": "virtual_host",
    "channel_max": "channel_max",
    "frame_max": "frame_max",
    "heartbeat": "heartbeat",
}

_BROKER_ERRORS = (AMQPError, OSError)
# 파라미터 검증 오류 (pika.ConnectionParameters)
_CONNECT_ERRORS = (*_BROKER_ERRORS, ValueError, TypeError)


def build_connection_parameters(host: str, options: "ConnectOptions") -> pika.ConnectionParameters:
    """연결 옵션을 pika.ConnectionParameters로 변환.

    Args:
        host: 브로커 주소
        options: 연결 옵션

    Returns:
        pika.ConnectionParameters
    """
    present = options.present()
    kwargs: dict[str, Any] = {"host": host}

    for name, param in _CONNECTION_PARAMETERS.items():
        if name in present and present[name] is not None:
            kwargs[param] = present[name]

    if "user" in present or "password" in present:
        password = options.password.get_secret_value() if options.password else "guest"
        kwargs["credentials"] = pika.PlainCredentials(options.user or "guest", password)

    if options.ssl:
        # ssl_init은 호환용 옵션 (Python ssl 모듈은 별도 초기화 불필요)
        context = ssl.create_default_context(cafile=options.ssl_cacert)
        if options.ssl_verify_host is False:
            context.check_hostname = False
        kwargs["ssl_options"] = pika.SSLOptions(context, host)
        kwargs.setdefault("port", 5671)

    return pika.ConnectionParameters(**kwargs)


class PikaBrokerClient:
    """pika 기반 브로커 클라이언트.

    BrokerClient 인터페이스 구현체입니다.
    하나의 BlockingConnection과 채널 번호별 BlockingChannel을 보관합니다.
    """

    def __init__(self) -> None:
        self._connection: BlockingConnection | None = None
        self._channels: dict[int, BlockingChannel] = {}

    @property
    def is_open(self) -> bool:
        return self._connection is not None and self._connection.is_open

    def connect(self, host: str, options: "ConnectOptions") -> None:
        """RabbitMQ 연결.

        연결 파라미터 오류(잘못된 CA 파일, 범위를 벗어난 값)도 CONNECT 실패입니다.
        """
        try:
            params = build_connection_parameters(host, options)
            self._connection = pika.BlockingConnection(params)
        except _CONNECT_ERRORS as e:
            raise BrokerClientError(ErrorKind.CONNECT, _describe(e)) from e
        logger.debug("Connected to RabbitMQ", extra={"broker_host": host})

    def channel_open(self, channel_id: int, *, confirm_delivery: bool = False) -> None:
        """채널 열기."""
        if self._connection is None:
            raise BrokerClientError(ErrorKind.CHANNEL_OPEN, "Not connected")
        try:
            channel = self._connection.channel(channel_number=channel_id)
            if confirm_delivery:
                channel.confirm_delivery()
        except _BROKER_ERRORS as e:
            raise BrokerClientError(ErrorKind.CHANNEL_OPEN, _describe(e)) from e
        self._channels[channel_id] = channel

    def exchange_declare(
        self,
        channel_id: int,
        exchange: str,
        options: "ExchangeOptions",
    ) -> None:
        """Exchange 선언."""
        channel = self._channel(channel_id, ErrorKind.DECLARE)
        kwargs = {k: v for k, v in options.present().items() if v is not None}
        try:
            channel.exchange_declare(exchange=exchange, **kwargs)
        except _BROKER_ERRORS as e:
            raise BrokerClientError(ErrorKind.DECLARE, _describe(e)) from e

    def publish(
        self,
        channel_id: int,
        routing_key: str,
        body: bytes,
        options: "PublishOptions",
    ) -> None:
        """메시지 발행.

        immediate 플래그는 RabbitMQ가 지원하지 않으므로 전달하지 않습니다.
        """
        channel = self._channel(channel_id, ErrorKind.PUBLISH)
        try:
            channel.basic_publish(
                exchange=options.exchange or "",
                routing_key=routing_key,
                body=body,
                properties=pika.BasicProperties(
                    content_type="text/plain",
                    content_encoding="utf-8",
                ),
                mandatory=bool(options.mandatory),
            )
        except _BROKER_ERRORS as e:
            raise BrokerClientError(ErrorKind.PUBLISH, _describe(e)) from e

    def close(self) -> None:
        """연결 종료."""
        connection, self._connection = self._connection, None
        self._channels.clear()
        if connection is None or not connection.is_open:
            return
        try:
            connection.close()
        except _BROKER_ERRORS as e:
            # 이미 끊긴 연결
            logger.debug("Ignoring close failure", extra={"error": _describe(e)})
            return
        logger.debug("Closed RabbitMQ connection")

    def _channel(self, channel_id: int, kind: ErrorKind) -> BlockingChannel:
        channel = self._channels.get(channel_id)
        if channel is None or not channel.is_open:
            raise BrokerClientError(kind, f"Channel {channel_id} is not open")
        return channel


def _describe(error: BaseException) -> str:
    text = str(error)
    return f"{type(error).__name__}: {text}" if text else type(error).__name__
