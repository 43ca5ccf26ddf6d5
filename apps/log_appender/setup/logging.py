"""Logging Configuration.

ECS 호환 JSON 로깅 설정입니다.
RABBITMQ_LOG_ENABLED=true이면 RabbitMQHandler를 루트 로거에 추가합니다.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import ecs_logging

from apps.log_appender.presentation.handler import RabbitMQHandler
from apps.log_appender.setup.config import get_settings

if TYPE_CHECKING:
    from apps.log_appender.setup.dependencies import Container


def setup_logging(container: "Container | None" = None) -> None:
    """로깅 설정.

    Args:
        container: 초기화된 컨테이너 (RabbitMQ 핸들러의 registry 제공)
    """
    settings = get_settings()

    # ECS JSON 포맷터
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ecs_logging.StdlibFormatter())

    # 루트 로거 설정
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)
    # 이전 setup_logging()이 붙인 RabbitMQ 핸들러는 연결을 닫고 제거
    for old_handler in root_logger.handlers:
        if isinstance(old_handler, RabbitMQHandler):
            old_handler.close()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # 서비스 메타데이터 추가
    old_factory = logging.getLogRecordFactory()

    def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
        record = old_factory(*args, **kwargs)
        record.service = {
            "name": settings.service_name,
            "version": settings.service_version,
            "environment": settings.environment,
        }
        return record

    logging.setLogRecordFactory(record_factory)

    # 외부 라이브러리 로그 레벨 조정
    logging.getLogger("pika").setLevel(logging.WARNING)

    # RabbitMQ 핸들러
    if settings.enabled and container is not None:
        rabbitmq_handler = container.build_handler(
            settings.level.upper(),
            **settings.handler_config(),
        )
        rabbitmq_handler.set_name("rabbitmq")
        root_logger.addHandler(rabbitmq_handler)
