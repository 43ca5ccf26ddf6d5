"""Broker Result.

브로커 작업(connect / declare / publish)의 결과를 추상화합니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class ResultStatus(Enum):
    """작업 결과 상태.

    - SUCCESS: 성공
    - SKIPPED: 연결이 없어 아무 것도 하지 않음
    - FAILED: 실패 (error_kind 참고)
    """

    SUCCESS = auto()
    SKIPPED = auto()
    FAILED = auto()


class ErrorKind(Enum):
    """실패 종류."""

    CONNECT = "connect"
    CHANNEL_OPEN = "channel_open"
    DECLARE = "declare"
    PUBLISH = "publish"


@dataclass(frozen=True)
class BrokerResult:
    """브로커 작업 결과.

    핵심 원칙:
    - Registry / Handle이 예외를 결과로 변환
    - Handler가 로그 후 계속 진행할지 결정
    """

    status: ResultStatus
    error_kind: ErrorKind | None = None
    message: str | None = None
    value: Any = None

    @property
    def is_success(self) -> bool:
        """성공 여부."""
        return self.status == ResultStatus.SUCCESS

    @property
    def is_skipped(self) -> bool:
        """건너뜀 여부."""
        return self.status == ResultStatus.SKIPPED

    @property
    def is_failure(self) -> bool:
        """실패 여부."""
        return self.status == ResultStatus.FAILED

    @classmethod
    def success(cls, value: Any = None) -> BrokerResult:
        """성공 결과 생성."""
        return cls(status=ResultStatus.SUCCESS, value=value)

    @classmethod
    def skipped(cls, message: str | None = None) -> BrokerResult:
        """건너뜀 결과 생성."""
        return cls(status=ResultStatus.SKIPPED, message=message)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> BrokerResult:
        """실패 결과 생성."""
        return cls(status=ResultStatus.FAILED, error_kind=kind, message=message)
