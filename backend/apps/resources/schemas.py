"""学习资源入参校验 Schema"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from apps.common.base.base_schema import BaseSchema
from apps.common.exceptions import ValidationError
from apps.common.utils.validators import (
    forbid_dangerous_html,
    optional_text,
    require_text,
    validate_choice,
    validate_url_optional,
)

from .models import Resource

_ALIASES = {"resourceType": "resource_type", "type": "resource_type"}


def _clean_link(value: Optional[str]) -> str:
    link = optional_text(value, field_name="链接", max_length=500).strip()
    validate_url_optional(link)
    return link


@dataclass
class ResourceCreateSchema(BaseSchema[None]):
    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = _ALIASES

    title: str
    resource_type: str
    description: Optional[str] = None
    content: Optional[str] = None
    link: Optional[str] = None

    def validate(self) -> None:
        self.title = require_text(self.title, field_name="标题", max_length=200)
        validate_choice(self.resource_type, Resource.ResourceType.values, field_name="资源类型")
        self.description = optional_text(self.description, field_name="简介", max_length=2000)
        self.content = optional_text(self.content, field_name="正文")
        forbid_dangerous_html(self.content, field_name="正文")
        self.link = _clean_link(self.link)


@dataclass
class ResourceUpdateSchema(BaseSchema[None]):
    """部分更新资源（PATCH）"""
    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = _ALIASES

    title: Optional[str] = None
    resource_type: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    link: Optional[str] = None

    def validate(self) -> None:
        provided = self.provided_fields()
        if not provided:
            raise ValidationError(message="没有需要更新的内容")
        if "title" in provided:
            self.title = require_text(self.title, field_name="标题", max_length=200)
        if "resource_type" in provided:
            validate_choice(self.resource_type, Resource.ResourceType.values, field_name="资源类型")
        if "description" in provided:
            self.description = optional_text(self.description, field_name="简介", max_length=2000)
        if "content" in provided:
            self.content = optional_text(self.content, field_name="正文")
            forbid_dangerous_html(self.content, field_name="正文")
        if "link" in provided:
            self.link = _clean_link(self.link)
