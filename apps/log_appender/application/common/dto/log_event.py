"""Log Event DTO.

로깅 파이프라인에서 전달받은 이벤트 데이터 구조입니다.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LogEvent:
    """로그 이벤트 DTO.

    Attributes:
        category: 로거 이름 (routing key의 %c)
        level: 레벨 이름 (routing key의 %p)
        message: 포맷이 끝난 메시지
    """

    category: str
    level: str
    message: bytes | str

    @property
    def payload(self) -> bytes:
        """발행할 메시지 본문 (UTF-8)."""
        if isinstance(self.message, bytes):
            return self.message
        return self.message.encode("utf-8")
