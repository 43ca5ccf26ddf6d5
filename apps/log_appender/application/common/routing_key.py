"""Routing Key Template.

``%c`` → 카테고리(로거 이름), ``%p`` → 레벨 이름.
"""

from __future__ import annotations

from apps.log_appender.application.common.dto.log_event import LogEvent

CATEGORY_PLACEHOLDER = "%c"
LEVEL_PLACEHOLDER = "%p"


class RoutingKeyTemplate:
    """Routing key 템플릿.

    치환 대상이 없으면 템플릿을 그대로 사용합니다.
    치환 여부는 생성 시 한 번만 계산합니다.
    """

    def __init__(self, template: str) -> None:
        self._template = template
        self._interpolate = (
            CATEGORY_PLACEHOLDER in template or LEVEL_PLACEHOLDER in template
        )

    @property
    def template(self) -> str:
        return self._template

    @property
    def interpolate(self) -> bool:
        """치환 필요 여부."""
        return self._interpolate

    def render(self, event: LogEvent) -> str:
        """이벤트에 대한 routing key 생성."""
        if not self._interpolate:
            return self._template
        return self._template.replace(CATEGORY_PLACEHOLDER, event.category).replace(
            LEVEL_PLACEHOLDER, event.level
        )

    def __repr__(self) -> str:
        return f"RoutingKeyTemplate({self._template!r})"
