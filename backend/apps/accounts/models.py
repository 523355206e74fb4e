"""
账户模型：俱乐部成员

- 扩展 Django AbstractUser：展示名、头像、简介、角色、水平
- 角色（member/admin/guest）决定接口权限，is_admin 供权限类统一判断
- 自定义 Manager：createsuperuser 创建的账号自动成为 admin 角色
"""

from __future__ import annotations

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models


class ClubUserManager(UserManager):
    """
    自定义用户管理器：
    - 创建超管时同步 role=admin，保证命令行建的超管能调用管理员接口
    """

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("role", self.model.Role.ADMIN)
        return super().create_superuser(username, email=email, password=password, **extra_fields)


class User(AbstractUser):
    """
    俱乐部用户：
    - 被认证、权限、活动报名、论坛、排行榜广泛引用
    - 密码仅保存哈希（make_password），任何接口都不返回
    """

    class Role(models.TextChoices):
        MEMBER = "member", "成员"
        ADMIN = "admin", "管理员"
        GUEST = "guest", "访客"

    class Level(models.TextChoices):
        BEGINNER = "beginner", "入门"
        INTERMEDIATE = "intermediate", "进阶"
        ADVANCED = "advanced", "高级"

    email = models.EmailField("邮箱", unique=True)
    display_name = models.CharField("展示名", max_length=60, blank=True, help_text="默认等于用户名")
    avatar = models.CharField("头像", max_length=500, blank=True, help_text="头像链接")
    bio = models.TextField("个人简介", blank=True)
    role = models.CharField("角色", max_length=10, choices=Role.choices, default=Role.MEMBER, db_index=True)
    level = models.CharField("水平", max_length=16, choices=Level.choices, default=Level.BEGINNER)

    objects = ClubUserManager()

    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = ["email"]

    class Meta(AbstractUser.Meta):  # type: ignore[misc]
        ordering = ["display_name", "id"]
        verbose_name = "用户"
        verbose_name_plural = "用户"

    def save(self, *args, **kwargs):
        # 展示名为空时回退为用户名，避免排行榜/论坛出现空白名字
        if not self.display_name:
            self.display_name = self.username
        super().save(*args, **kwargs)

    @property
    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN
