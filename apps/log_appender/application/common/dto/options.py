"""Appender Options.

설정 맵을 connect / exchange-declare / publish 세 그룹으로 분리합니다.

설정되지 않은 옵션과 명시적으로 설정된 옵션을 구분하기 위해
pydantic의 ``model_fields_set``을 사용합니다.
설정되지 않은 옵션은 브로커 클라이언트에 전달되지 않고 캐시 키에도 포함되지 않습니다.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, SecretStr

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_ROUTING_KEY = "%c"


class _OptionGroup(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    def present(self) -> dict[str, Any]:
        """명시적으로 설정된 옵션만 반환."""
        return {name: getattr(self, name) for name in sorted(self.model_fields_set)}


class ConnectOptions(_OptionGroup):
    """connect()에 전달되는 옵션."""

    user: Optional[str] = None
    password: Optional[SecretStr] = None
    port: Optional[int] = None
    vhost: Optional[str] = None
    channel_max: Optional[int] = None
    frame_max: Optional[int] = None
    heartbeat: Optional[int] = None
    ssl: Optional[bool] = None
    ssl_verify_host: Optional[bool] = None
    ssl_cacert: Optional[str] = None
    ssl_init: Optional[bool] = None
    confirm_delivery: Optional[bool] = None

    def cache_key(self) -> tuple[tuple[str, Any], ...]:
        """옵션 이름 순으로 정렬된 (이름, 값) 튜플."""
        items = []
        for name, value in self.present().items():
            if isinstance(value, SecretStr):
                value = value.get_secret_value()
            items.append((name, value))
        return tuple(items)


class ExchangeOptions(_OptionGroup):
    """exchange_declare()에 전달되는 옵션.

    설정 키의 ``_exchange`` 접미사를 제거한 이름을 사용합니다
    (``exchange_type``은 접미사가 아니므로 그대로).
    """

    exchange_type: Optional[str] = None
    passive: Optional[bool] = None
    durable: Optional[bool] = None
    auto_delete: Optional[bool] = None


class PublishOptions(_OptionGroup):
    """publish()에 전달되는 옵션."""

    exchange: Optional[str] = None
    mandatory: Optional[bool] = None
    immediate: Optional[bool] = None


CONNECT_KEYS = tuple(ConnectOptions.model_fields)
EXCHANGE_KEYS = {
    "exchange_type": "exchange_type",
    "passive_exchange": "passive",
    "durable_exchange": "durable",
    "auto_delete_exchange": "auto_delete",
}
PUBLISH_KEYS = tuple(PublishOptions.model_fields)
APPENDER_KEYS = ("host", "routing_key", "declare_exchange")

KNOWN_KEYS = frozenset(CONNECT_KEYS + tuple(EXCHANGE_KEYS) + PUBLISH_KEYS + APPENDER_KEYS)


class AppenderOptions(BaseModel):
    """Appender 전체 설정.

    Attributes:
        host: 브로커 주소
        routing_key: routing key 템플릿 (%c, %p)
        declare_exchange: 생성 시 exchange 선언 여부
        connect: 연결 옵션
        exchange: exchange 선언 옵션
        publish: 발행 옵션
    """

    model_config = ConfigDict(frozen=True)

    host: str = DEFAULT_HOST
    routing_key: str = DEFAULT_ROUTING_KEY
    declare_exchange: bool = False
    connect: ConnectOptions = ConnectOptions()
    exchange: ExchangeOptions = ExchangeOptions()
    publish: PublishOptions = PublishOptions()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> AppenderOptions:
        """설정 맵에서 옵션 생성.

        알 수 없는 키는 무시합니다.
        ``host`` / ``routing_key``가 비어 있으면 기본값을 사용합니다.

        Raises:
            pydantic.ValidationError: 값 변환 실패 시
        """
        unknown = sorted(set(config) - KNOWN_KEYS)
        if unknown:
            logger.debug("Ignoring unknown appender options", extra={"keys": unknown})

        connect = {k: config[k] for k in CONNECT_KEYS if k in config}
        exchange = {
            name: config[key] for key, name in EXCHANGE_KEYS.items() if key in config
        }
        publish = {k: config[k] for k in PUBLISH_KEYS if k in config}

        return cls(
            host=config.get("host") or DEFAULT_HOST,
            routing_key=config.get("routing_key") or DEFAULT_ROUTING_KEY,
            declare_exchange=config.get("declare_exchange") or False,
            connect=ConnectOptions(**connect),
            exchange=ExchangeOptions(**exchange),
            publish=PublishOptions(**publish),
        )
