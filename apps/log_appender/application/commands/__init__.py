"""Commands (Use Cases).

로그 이벤트 발행 Command 구현체입니다.
"""

from apps.log_appender.application.commands.publish_log_event import (
    PublishLogEventCommand,
)

__all__ = ["PublishLogEventCommand"]
