"""Broker exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from apps.log_appender.application.common.exceptions.base import ApplicationError

if TYPE_CHECKING:
    from apps.log_appender.application.common.result import ErrorKind


class BrokerClientError(ApplicationError):
    """브로커 클라이언트 작업 실패.

    BrokerClient 구현체가 발생시키며,
    ConnectionRegistry / ConnectionHandle 경계에서 BrokerResult로 변환됩니다.
    """

    def __init__(self, kind: "ErrorKind", message: str) -> None:
        self.kind = kind
        super().__init__(message)
