"""账户相关的入参校验 Schema

定义注册、登录、修改资料、修改角色等请求的输入结构与校验规则
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from apps.common.base.base_schema import BaseSchema
from apps.common.exceptions import ValidationError
from apps.common.utils.validators import (
    forbid_dangerous_html,
    optional_text,
    validate_choice,
    validate_email,
    validate_password_strength,
    validate_url_optional,
    validate_username,
)

from .models import User


@dataclass
class RegisterSchema(BaseSchema[None]):
    """
    注册入参 Schema：
    - 校验用户名格式、邮箱格式与密码强度
    - 展示名/头像/简介可选
    """
    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = {"displayName": "display_name"}

    username: str
    email: str
    password: str
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None

    def validate(self) -> None:
        validate_username(self.username)
        if not isinstance(self.email, str):
            raise ValidationError(message="邮箱格式不正确")
        validate_email(self.email)
        validate_password_strength(self.password)
        self.display_name = optional_text(self.display_name, field_name="展示名", max_length=60)
        self.avatar = optional_text(self.avatar, field_name="头像", max_length=500)
        validate_url_optional(self.avatar)
        self.bio = optional_text(self.bio, field_name="个人简介", max_length=2000)
        forbid_dangerous_html(self.bio, field_name="个人简介")


@dataclass
class LoginSchema(BaseSchema[None]):
    """
    登录入参 Schema：
    - identifier 为用户名或邮箱（兼容前端传 username / email）
    """
    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = {"username": "identifier", "email": "identifier"}

    identifier: str
    password: str

    def validate(self) -> None:
        if not isinstance(self.identifier, str) or len(self.identifier.strip()) < 3:
            raise ValidationError(message="请输入正确的用户名或邮箱")
        self.identifier = self.identifier.strip()
        if not isinstance(self.password, str) or not self.password:
            raise ValidationError(message="请输入密码")


@dataclass
class ProfileUpdateSchema(BaseSchema[None]):
    """
    个人资料更新入参 Schema（PATCH 语义，只处理出现的字段）
    """
    auto_validate: ClassVar[bool] = True
    ALIASES: ClassVar[dict[str, str]] = {"displayName": "display_name"}

    display_name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    level: Optional[str] = None

    def validate(self) -> None:
        provided = self.provided_fields()
        if not provided:
            raise ValidationError(message="没有需要更新的内容")
        if "display_name" in provided:
            self.display_name = optional_text(self.display_name, field_name="展示名", max_length=60)
        if "email" in provided:
            if not isinstance(self.email, str):
                raise ValidationError(message="邮箱格式不正确")
            validate_email(self.email)
        if "avatar" in provided:
            self.avatar = optional_text(self.avatar, field_name="头像", max_length=500)
            validate_url_optional(self.avatar)
        if "bio" in provided:
            self.bio = optional_text(self.bio, field_name="个人简介", max_length=2000)
            forbid_dangerous_html(self.bio, field_name="个人简介")
        if "level" in provided:
            validate_choice(self.level, User.Level.values, field_name="水平")


@dataclass
class RoleUpdateSchema(BaseSchema[None]):
    """管理员修改用户角色"""
    auto_validate: ClassVar[bool] = True

    role: str

    def validate(self) -> None:
        validate_choice(self.role, User.Role.values, field_name="角色")
