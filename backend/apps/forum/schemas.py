"""论坛入参校验 Schema"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional

from apps.common.base.base_schema import BaseSchema
from apps.common.exceptions import ValidationError
from apps.common.utils.validators import forbid_dangerous_html, require_text, validate_tags


@dataclass
class PostCreateSchema(BaseSchema[None]):
    auto_validate: ClassVar[bool] = True

    title: str
    content: str
    tags: Any = None

    def validate(self) -> None:
        self.title = require_text(self.title, field_name="标题", max_length=200)
        self.content = require_text(self.content, field_name="内容", max_length=20000)
        forbid_dangerous_html(self.content, field_name="内容")
        self.tags = validate_tags(self.tags)


@dataclass
class PostUpdateSchema(BaseSchema[None]):
    """部分更新帖子（PATCH）"""
    auto_validate: ClassVar[bool] = True

    title: Optional[str] = None
    content: Optional[str] = None
    tags: Any = None

    def validate(self) -> None:
        provided = self.provided_fields()
        if not provided:
            raise ValidationError(message="没有需要更新的内容")
        if "title" in provided:
            self.title = require_text(self.title, field_name="标题", max_length=200)
        if "content" in provided:
            self.content = require_text(self.content, field_name="内容", max_length=20000)
            forbid_dangerous_html(self.content, field_name="内容")
        if "tags" in provided:
            self.tags = validate_tags(self.tags)


@dataclass
class ReplySchema(BaseSchema[None]):
    """发表/修改回复"""
    auto_validate: ClassVar[bool] = True

    content: str

    def validate(self) -> None:
        self.content = require_text(self.content, field_name="回复内容", max_length=10000)
        forbid_dangerous_html(self.content, field_name="回复内容")
