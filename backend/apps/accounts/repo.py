"""账户模块的数据访问层

封装 User 的查询、创建、唯一性校验，数据库版与内存版共用同一套查询方法
"""

from __future__ import annotations

from typing import Optional

from django.contrib.auth.hashers import make_password

from apps.common.base.base_repo import BaseRepo
from apps.common.base.memory_repo import MemoryRepo

from .models import User


class UserQueries:
    """
    用户查询：
    - 注册时用户名/邮箱唯一性校验
    - 登录时兼容用户名/邮箱两种方式
    - 依赖 BaseRepo / MemoryRepo 的通用接口，两种存储共用
    """

    model = User
    ordering = ("display_name", "id")
    not_found_message = "用户不存在"

    def username_exists(self, username: str) -> bool:
        return self.exists(username=username)

    def email_exists(self, email: str, *, exclude_user_id: Optional[int] = None) -> bool:
        """
        判断邮箱是否被占用
        - exclude_user_id：修改资料时排除自己
        """
        return any(user.id != exclude_user_id for user in self.filter(email=email.lower()))

    def get_by_identifier(self, identifier: str) -> Optional[User]:
        """根据是否包含 @ 选择邮箱或用户名查询"""
        if "@" in identifier:
            return self.get_or_none(email=identifier.lower())
        return self.get_or_none(username=identifier)

    def create_user(self, *, username: str, email: str, password: str, **extra) -> User:
        """
        创建用户：密码做哈希后保存，展示名默认为用户名
        """
        extra.setdefault("display_name", username)
        if not extra["display_name"]:
            extra["display_name"] = username
        return self.create(
            {
                "username": username,
                "email": email.lower(),
                "password": make_password(password),
                **extra,
            }
        )


class UserRepo(UserQueries, BaseRepo[User]):
    """用户仓储（数据库）"""


class MemoryUserRepo(UserQueries, MemoryRepo[User]):
    """用户仓储（内存）"""

    unique_together = (("username",), ("email",))
