"""活动模块的入参校验 Schema

定义活动创建/更新、比赛成绩登记/更新的输入结构与校验规则
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from apps.common.base.base_schema import BaseSchema
from apps.common.exceptions import ValidationError
from apps.common.utils.validators import (
    ID_MAX,
    ensure_int,
    forbid_dangerous_html,
    optional_text,
    parse_datetime_value,
    require_text,
    validate_choice,
)

from .models import Event


@dataclass
class EventCreateSchema(BaseSchema[None]):
    """
    创建活动：
    - 标题、类型、开始时间、时长必填；时长为正整数（分钟）
    """
    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = {"eventType": "event_type"}

    title: str
    event_type: str
    date: Any
    duration: Any
    description: Optional[str] = None
    location: Optional[str] = None

    def validate(self) -> None:
        self.title = require_text(self.title, field_name="标题", max_length=200)
        validate_choice(self.event_type, Event.EventType.values, field_name="活动类型")
        self.date = parse_datetime_value(self.date, field_name="开始时间")
        self.duration = ensure_int(self.duration, field_name="时长", min_value=1)
        self.description = optional_text(self.description, field_name="描述")
        forbid_dangerous_html(self.description, field_name="描述")
        self.location = optional_text(self.location, field_name="地点", max_length=200)


@dataclass
class EventUpdateSchema(BaseSchema[None]):
    """部分更新活动（PATCH）"""
    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = {"eventType": "event_type"}

    title: Optional[str] = None
    event_type: Optional[str] = None
    date: Any = None
    duration: Any = None
    description: Optional[str] = None
    location: Optional[str] = None

    def validate(self) -> None:
        provided = self.provided_fields()
        if not provided:
            raise ValidationError(message="没有需要更新的内容")
        if "title" in provided:
            self.title = require_text(self.title, field_name="标题", max_length=200)
        if "event_type" in provided:
            validate_choice(self.event_type, Event.EventType.values, field_name="活动类型")
        if "date" in provided:
            self.date = parse_datetime_value(self.date, field_name="开始时间")
        if "duration" in provided:
            self.duration = ensure_int(self.duration, field_name="时长", min_value=1)
        if "description" in provided:
            self.description = optional_text(self.description, field_name="描述")
            forbid_dangerous_html(self.description, field_name="描述")
        if "location" in provided:
            self.location = optional_text(self.location, field_name="地点", max_length=200)


def _optional_position(value: Any) -> Optional[int]:
    if value is None:
        return None
    return ensure_int(value, field_name="名次", min_value=1)


@dataclass
class ContestResultCreateSchema(BaseSchema[None]):
    """登记比赛成绩：用户、得分必填，名次可选（从 1 开始）"""
    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = {"userId": "user_id"}

    user_id: Any
    score: Any
    position: Any = None

    def validate(self) -> None:
        self.user_id = ensure_int(self.user_id, field_name="用户 ID", min_value=1, max_value=ID_MAX)
        self.score = ensure_int(self.score, field_name="得分")
        self.position = _optional_position(self.position)


@dataclass
class ContestResultUpdateSchema(BaseSchema[None]):
    """修改比赛成绩（PATCH）"""
    auto_validate: ClassVar[bool] = True

    score: Any = None
    position: Any = None

    def validate(self) -> None:
        provided = self.provided_fields()
        if not provided:
            raise ValidationError(message="没有需要更新的内容")
        if "score" in provided:
            self.score = ensure_int(self.score, field_name="得分")
        if "position" in provided:
            self.position = _optional_position(self.position)

