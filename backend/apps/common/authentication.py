"""
统一 JWT 认证封装（apps.common.authentication）

职责与目标：
- 全局 JWT 认证入口，统一 Header/Cookie 取 Token 的逻辑
- 用户查询走当前存储后端（数据库 / 内存），与 Service 看到同一份用户数据
- 将 JWT 相关异常映射到 BizError（TokenError/AuthError），交由全局异常处理器统一格式化响应

默认行为（兼容 SimpleJWT）：
- 优先从 Authorization 头读取：Authorization: Bearer <token>
- 可选从 Cookie 读取：settings.JWT_ACCESS_COOKIE_NAME=<token>（登录接口写入的 HttpOnly Cookie）
- 未提供凭证 → 返回 None（匿名，由权限类决定是否放行）
- 凭证无效/过期 → TokenError(40103)；用户不存在/停用 → AuthError(40100)
"""

from __future__ import annotations

from typing import Any, Optional

from django.conf import settings
from rest_framework.request import Request
from rest_framework_simplejwt.authentication import (
    JWTAuthentication as SimpleJWTAuthentication,
)
from rest_framework_simplejwt.exceptions import (
    InvalidToken,
    AuthenticationFailed as SimpleJWTAuthFailed,
)
from rest_framework_simplejwt.settings import api_settings as jwt_settings

from .exceptions import TokenError, AuthError
from .infra.logger import get_logger, logger_extra
from .storage import get_storage
from .utils.request_context import update_request_user

logger = get_logger(__name__)


def access_cookie_name() -> str:
    return getattr(settings, "JWT_ACCESS_COOKIE_NAME", "club_access_token")


class JWTAuthentication(SimpleJWTAuthentication):
    """
    统一 JWT 认证入口

    可配置点：
    - JWT_USE_COOKIE: 是否允许从 cookie 读取 access token；
    - JWT_ACCESS_COOKIE_NAME: cookie 中 access token 的键名
    """

    def authenticate(self, request: Request) -> Optional[tuple[Any, Any]]:
        """
        返回：
            - (user, validated_token)：认证成功；
            - None：未提供任何凭证（交给后续权限系统处理）
        """
        header = self.get_header(request)
        raw_token = None

        if header is not None:
            # SimpleJWT 的 get_raw_token 负责解析前缀（Bearer）
            raw_token = self.get_raw_token(header)

        if raw_token is None and getattr(settings, "JWT_USE_COOKIE", True):
            cookie_token = request.COOKIES.get(access_cookie_name())
            if cookie_token:
                raw_token = cookie_token

        if raw_token is None:
            return None

        try:
            validated_token = self.get_validated_token(raw_token)
            user = self.get_user(validated_token)
        except InvalidToken as exc:
            # 具体错误原因不泄露给前端，只给出“登录状态失效”的友好提示
            logger.warning(
                "认证失败：无效或过期的 JWT",
                extra=logger_extra({"reason": "invalid_token"}),
            )
            raise TokenError(message="令牌无效或已过期，请重新登录") from exc
        except SimpleJWTAuthFailed as exc:
            detail = getattr(exc, "detail", None)
            message = str(detail) if detail is not None else "认证失败，请重新登录"
            logger.warning(
                "认证失败：用户校验失败",
                extra=logger_extra({"reason": message}),
            )
            raise AuthError(message=message) from exc

        update_request_user(user)
        return user, validated_token

    def get_user(self, validated_token):
        """
        按 token 中的用户 ID 从当前存储后端取用户
        """
        try:
            user_id = validated_token[jwt_settings.USER_ID_CLAIM]
        except KeyError as exc:
            raise InvalidToken("令牌中缺少用户标识") from exc

        try:
            user_id = int(user_id)
        except (TypeError, ValueError) as exc:
            raise InvalidToken("令牌中的用户标识非法") from exc

        user = get_storage().users.get_or_none(id=user_id)
        if user is None:
            raise SimpleJWTAuthFailed("用户不存在", code="user_not_found")
        if not user.is_active:
            raise SimpleJWTAuthFailed("账户已停用，请联系管理员", code="user_inactive")
        return user
