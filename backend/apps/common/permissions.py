"""
通用权限封装（apps.common.permissions）

职责：
- 放置全局可复用的权限类（基于 DRF 的认证系统）
- 封装“登录/管理员/只读/作者或管理员”等常见场景的权限校验
- 出错时统一抛出 BizError 子类，由全局异常处理器统一包装响应：
  未登录 → NotAuthenticatedError(401)，已登录但权限不足 → PermissionDeniedError(403)
"""

from __future__ import annotations

from typing import Any, Optional

from rest_framework.permissions import BasePermission, SAFE_METHODS
from rest_framework.request import Request

from .exceptions import NotAuthenticatedError, PermissionDeniedError


# ======================
# 小工具
# ======================

def _ensure_authenticated(request: Request):
    """
    确保用户已登录，返回 User；否则抛 NotAuthenticatedError
    """
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        raise NotAuthenticatedError()
    return user


def is_admin(user: Any) -> bool:
    """角色为 admin 的登录用户"""
    return bool(user is not None and getattr(user, "is_authenticated", False) and getattr(user, "is_admin", False))


def ensure_owner_or_admin(user: Any, owner_id: Optional[int], message: str = "仅作者或管理员可以执行此操作") -> None:
    """
    作者本人或管理员才能继续，否则抛 PermissionDeniedError
    - Service 层在拿到对象后调用（对象级权限需要先查出 owner）
    """
    if user is None or not getattr(user, "is_authenticated", False):
        raise NotAuthenticatedError()
    if is_admin(user) or user.id == owner_id:
        return
    raise PermissionDeniedError(message=message)


# ======================
# 通用权限类
# ======================

class AllowAny(BasePermission):
    """
    允许任何请求通过（公开接口）
    """

    def has_permission(self, request: Request, view: Any) -> bool:  # noqa: D401
        return True


class IsAuthenticated(BasePermission):
    """
    需要已登录用户

    等价于 DRF 默认的 IsAuthenticated，但出错时抛 BizError，
    便于全局异常处理器统一格式
    """

    def has_permission(self, request: Request, view: Any) -> bool:
        _ensure_authenticated(request)
        return True


class IsAdmin(BasePermission):
    """
    需要管理员角色（role == admin）

    - 未登录 → 401
    - 已登录但非管理员 → 403
    """

    message = "仅管理员可以执行此操作"

    def has_permission(self, request: Request, view: Any) -> bool:
        user = _ensure_authenticated(request)
        if is_admin(user):
            return True
        raise PermissionDeniedError(message=self.message)


class IsAdminOrReadOnly(BasePermission):
    """
    只读放行，非只读操作需管理员权限
    """

    message = "仅管理员可以执行此操作"

    def has_permission(self, request: Request, view: Any) -> bool:
        if request.method in SAFE_METHODS:
            return True
        return IsAdmin().has_permission(request, view)


class IsAuthenticatedOrReadOnly(BasePermission):
    """
    只读放行，写操作需登录（论坛发帖/回复）
    """

    def has_permission(self, request: Request, view: Any) -> bool:
        if request.method in SAFE_METHODS:
            return True
        _ensure_authenticated(request)
        return True
