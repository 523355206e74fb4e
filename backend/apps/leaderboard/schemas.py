from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from apps.common.base.base_schema import BaseSchema
from apps.common.exceptions import ValidationError
from apps.common.utils.validators import ensure_int, optional_text


@dataclass
class ScoreAdjustmentSchema(BaseSchema[None]):
    """
    管理员修正成员分数：delta 为非零整数（兼容前端传 score）
    """
    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = {"score": "delta"}

    delta: Any
    reason: Optional[str] = None

    def validate(self) -> None:
        self.delta = ensure_int(self.delta, field_name="分数变化")
        if self.delta == 0:
            raise ValidationError(message="分数变化不能为 0")
        self.reason = optional_text(self.reason, field_name="原因", max_length=200)
