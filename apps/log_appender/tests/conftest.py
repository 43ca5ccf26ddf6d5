"""Test fixtures for log_appender."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from apps.log_appender.application.common.exceptions import BrokerClientError
from apps.log_appender.application.common.result import ErrorKind
from apps.log_appender.infrastructure.messaging.connection_registry import (
    ConnectionRegistry,
)

_KINDS = {
    "connect": ErrorKind.CONNECT,
    "channel_open": ErrorKind.CHANNEL_OPEN,
    "exchange_declare": ErrorKind.DECLARE,
    "publish": ErrorKind.PUBLISH,
}


class FakeBrokerClient:
    """호출을 기록하는 BrokerClient."""

    def __init__(self, broker: "FakeBroker") -> None:
        self._broker = broker
        self.is_open = False
        self.closed = False

    def connect(self, host: str, options: Any) -> None:
        self._call("connect", host, options)
        self.is_open = True

    def channel_open(self, channel_id: int, *, confirm_delivery: bool = False) -> None:
        self._call("channel_open", channel_id, confirm_delivery)

    def exchange_declare(self, channel_id: int, exchange: str, options: Any) -> None:
        self._call("exchange_declare", channel_id, exchange, options)

    def publish(self, channel_id: int, routing_key: str, body: bytes, options: Any) -> None:
        self._call("publish", channel_id, routing_key, body, options)

    def close(self) -> None:
        self._broker.calls.append(("close", self))
        self.is_open = False
        self.closed = True

    def _call(self, op: str, *args: Any) -> None:
        self._broker.calls.append((op, *args))
        message = self._broker.take_failure(op)
        if message is not None:
            raise BrokerClientError(_KINDS[op], message)


class FakeBroker:
    """FakeBrokerClient 팩토리 + 호출 기록 + 실패 주입."""

    def __init__(self) -> None:
        self.clients: list[FakeBrokerClient] = []
        self.calls: list[tuple[Any, ...]] = []
        self._failures: dict[str, int | None] = {}
        self._messages: dict[str, str] = {}

    def __call__(self) -> FakeBrokerClient:
        client = FakeBrokerClient(self)
        self.clients.append(client)
        return client

    def fail(self, op: str, message: str = "boom", times: int | None = 1) -> None:
        """op 실패 주입 (times=None이면 계속 실패)."""
        self._failures[op] = times
        self._messages[op] = message

    def recover(self) -> None:
        self._failures.clear()

    def take_failure(self, op: str) -> str | None:
        if op not in self._failures:
            return None
        remaining = self._failures[op]
        if remaining is not None:
            if remaining <= 1:
                del self._failures[op]
            else:
                self._failures[op] = remaining - 1
        return self._messages[op]

    def ops(self) -> list[str]:
        return [call[0] for call in self.calls]

    def calls_named(self, op: str) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == op]

    @property
    def published(self) -> list[tuple[str, bytes, Any]]:
        """(routing_key, body, options) 목록."""
        return [(c[2], c[3], c[4]) for c in self.calls_named("publish")]


@pytest.fixture
def broker() -> FakeBroker:
    """Fake broker."""
    return FakeBroker()


@pytest.fixture
def registry(broker: FakeBroker) -> ConnectionRegistry:
    """Registry backed by the fake broker."""
    registry = ConnectionRegistry(broker)
    yield registry
    registry.close()


@pytest.fixture
def make_record():
    """LogRecord factory."""

    def _make(name: str = "cat1", level: int = logging.INFO, msg: str = "hello") -> logging.LogRecord:
        return logging.LogRecord(name, level, __file__, 1, msg, (), None)

    return _make
