"""账户模块的业务服务层

职责：
- 用户注册、登录（JWT）、修改资料、管理员调整角色
- 用户目录查询（列表/详情），对外输出时剥离密码
- 统一封装业务流程与异常抛出，视图层仅做参数接收与结果返回
"""

from __future__ import annotations

from django.db import IntegrityError
from rest_framework_simplejwt.tokens import RefreshToken

from apps.common.base.base_service import BaseQueryService, BaseService
from apps.common.exceptions import (
    AccountInactiveError,
    ConflictError,
    InvalidCredentialsError,
)
from apps.common.infra.logger import get_logger, logger_extra
from apps.common.utils.helpers import mask_email

from .models import User
from .schemas import LoginSchema, ProfileUpdateSchema, RegisterSchema, RoleUpdateSchema

logger = get_logger(__name__)


def serialize_user(user: User) -> dict[str, object]:
    """
    用户序列化：将 User 转换为 API 输出字典（不含密码）
    """
    return {
        "id": user.id,
        "username": user.username,
        "display_name": user.display_name or user.username,
        "email": user.email,
        "avatar": user.avatar,
        "bio": user.bio,
        "role": user.role,
        "level": user.level,
        "date_joined": user.date_joined.isoformat() if user.date_joined else None,
    }


def issue_tokens(user: User) -> dict[str, str]:
    """为用户签发 refresh/access 令牌"""
    refresh = RefreshToken.for_user(user)
    return {"refresh": str(refresh), "access": str(refresh.access_token)}


class RegisterService(BaseService[User]):
    """
    注册服务：
    - 校验用户名/邮箱唯一性，并发下的唯一约束冲突同样返回 409
    - 创建用户（密码哈希），默认角色 member、水平 beginner
    """

    def perform(self, schema: RegisterSchema) -> User:
        users = self.storage.users
        email = schema.email.lower()

        if users.username_exists(schema.username):
            raise ConflictError(message="用户名已被使用")
        if users.email_exists(email):
            raise ConflictError(message="邮箱已注册账号")

        try:
            with self.atomic():
                user = users.create_user(
                    username=schema.username,
                    email=email,
                    password=schema.password,
                    display_name=schema.display_name or schema.username,
                    avatar=schema.avatar or "",
                    bio=schema.bio or "",
                )
        except IntegrityError as exc:
            logger.warning("并发注册冲突", extra=logger_extra({"username": schema.username}))
            raise ConflictError(message="用户名或邮箱已被使用") from exc
        logger.info("注册成功", extra=logger_extra({"user_id": user.id, "username": user.username, "email": mask_email(user.email)}))
        return user


class LoginService(BaseService[dict[str, object]]):
    """
    登录服务：
    - 支持用户名或邮箱登录
    - 校验账户状态与密码，返回 JWT 刷新/访问令牌及用户信息
    """

    atomic_enabled = False

    def perform(self, schema: LoginSchema) -> dict[str, object]:
        identifier = schema.identifier
        user = self.storage.users.get_by_identifier(identifier)
        if user is None:
            logger.warning("登录失败：账号不存在", extra=logger_extra({"identifier": identifier}))
            raise InvalidCredentialsError(message="账号或密码错误")

        if not user.check_password(schema.password):
            logger.warning(
                "登录失败：密码错误",
                extra=logger_extra({"user_id": user.id, "identifier": identifier}),
            )
            raise InvalidCredentialsError(message="账号或密码错误")

        if not user.is_active:
            logger.warning("登录失败：账户停用", extra=logger_extra({"user_id": user.id}))
            raise AccountInactiveError()

        logger.info("登录成功", extra=logger_extra({"user_id": user.id, "identifier": identifier}))
        return {**issue_tokens(user), "user": serialize_user(user)}


class UpdateProfileService(BaseService[User]):
    """
    修改个人资料：
    - 仅更新请求中出现的字段
    - 修改邮箱时校验唯一性
    """

    def perform(self, user: User, schema: ProfileUpdateSchema) -> User:
        users = self.storage.users
        # 重新从存储取出，避免修改认证阶段缓存的实例
        target = users.get_by_id(user.id)
        changes = schema.provided_fields()
        if "email" in changes:
            changes["email"] = changes["email"].lower()
            if users.email_exists(changes["email"], exclude_user_id=target.id):
                raise ConflictError(message="邮箱已被其他账号使用")
        if "display_name" in changes and not changes["display_name"]:
            changes["display_name"] = target.username
        target = users.update(target, changes)
        logger.info("资料已更新", extra=logger_extra({"user_id": target.id, "fields": sorted(changes)}))
        return target


class ChangeRoleService(BaseService[User]):
    """管理员修改用户角色"""

    def perform(self, operator: User, user_id: int, schema: RoleUpdateSchema) -> User:
        users = self.storage.users
        target = users.get_by_id(user_id)
        previous = target.role
        target = users.update(target, {"role": schema.role})
        logger.info(
            "用户角色已调整",
            extra=logger_extra(
                {"operator_id": operator.id, "user_id": target.id, "from": previous, "to": schema.role}
            ),
        )
        return target


class UserDirectoryService(BaseQueryService[None]):
    """用户目录：按展示名排序的成员列表与单个成员详情"""

    def list_users(self) -> list[User]:
        return self.storage.users.list()

    def get_user(self, user_id: int) -> User:
        return self.storage.users.get_by_id(user_id)
