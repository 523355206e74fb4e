from __future__ import annotations

from django.conf import settings
from drf_spectacular.utils import extend_schema, inline_serializer, OpenApiExample
from rest_framework import serializers
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError as SimpleJWTTokenError
from rest_framework_simplejwt.tokens import RefreshToken

from apps.common import response
from apps.common.authentication import access_cookie_name
from apps.common.exceptions import TokenError, ValidationError
from apps.common.infra.logger import get_logger, logger_extra
from apps.common.permissions import AllowAny, IsAdmin, IsAuthenticated
from apps.common.schema_utils import api_response_schema, list_response, user_serializer
from apps.common.utils.helpers import to_payload
from apps.common.utils.validators import parse_id

from .schemas import LoginSchema, ProfileUpdateSchema, RegisterSchema, RoleUpdateSchema
from .services import (
    ChangeRoleService,
    LoginService,
    RegisterService,
    UpdateProfileService,
    UserDirectoryService,
    issue_tokens,
    serialize_user,
)

logger = get_logger(__name__)

# 视图层：账户注册/登录/资料/用户目录接口，仅做参数转换与调用服务层，不承载业务


def _set_jwt_cookie(resp: Response, access_token: str) -> None:
    """
    登录成功后把 access token 写入 HttpOnly Cookie，前端无需手动携带 Authorization 头
    """
    if not getattr(settings, "JWT_USE_COOKIE", True):
        return
    lifetime = settings.SIMPLE_JWT.get("ACCESS_TOKEN_LIFETIME")
    resp.set_cookie(
        access_cookie_name(),
        access_token,
        httponly=True,
        secure=not settings.DEBUG,
        samesite="Lax",
        max_age=int(lifetime.total_seconds()) if lifetime else None,
    )


def _clear_jwt_cookie(resp: Response) -> None:
    resp.delete_cookie(access_cookie_name(), samesite="Lax")


class RegisterView(APIView):
    """用户注册接口：校验唯一性后创建账户并直接登录"""

    permission_classes = [AllowAny]

    @extend_schema(
        tags=["accounts-auth"],
        summary="注册账户",
        request=inline_serializer(
            name="RegisterRequest",
            fields={
                "username": serializers.CharField(),
                "email": serializers.EmailField(),
                "password": serializers.CharField(),
                "display_name": serializers.CharField(required=False, allow_blank=True),
                "avatar": serializers.CharField(required=False, allow_blank=True),
                "bio": serializers.CharField(required=False, allow_blank=True),
            },
        ),
        responses=api_response_schema(
            "Register",
            {
                "access": serializers.CharField(),
                "refresh": serializers.CharField(),
                "user": user_serializer(),
            },
        ),
    )
    def post(self, request: Request) -> Response:
        _ = self
        schema = RegisterSchema.from_dict(to_payload(request.data))
        user = RegisterService().execute(schema)
        tokens = issue_tokens(user)
        resp = response.created({**tokens, "user": serialize_user(user)}, message="注册成功")
        _set_jwt_cookie(resp, access_token=tokens["access"])
        return resp


class LoginView(APIView):
    """用户登录接口：返回 JWT（刷新/访问）并写入 Cookie"""

    permission_classes = [AllowAny]
    # 登录接口不解析旧 Cookie，避免过期令牌挡住重新登录
    authentication_classes: list = []

    @extend_schema(
        tags=["accounts-auth"],
        summary="登录账户",
        request=inline_serializer(
            name="LoginRequest",
            fields={
                "identifier": serializers.CharField(help_text="用户名或邮箱"),
                "password": serializers.CharField(),
            },
        ),
        responses=api_response_schema(
            "Login",
            {
                "access": serializers.CharField(help_text="访问令牌"),
                "refresh": serializers.CharField(help_text="刷新令牌"),
                "user": user_serializer(),
            },
        ),
        examples=[
            OpenApiExample(
                "登录请求示例",
                value={"identifier": "alice 或 alice@example.com", "password": "Passw0rd123"},
            )
        ],
    )
    def post(self, request: Request) -> Response:
        _ = self
        schema = LoginSchema.from_dict(to_payload(request.data))
        data = LoginService().execute(schema)
        resp = response.success(data, message="登录成功")
        _set_jwt_cookie(resp, access_token=str(data["access"]))
        return resp


class LogoutView(APIView):
    """退出登录：清除 Cookie 中的访问令牌"""

    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["accounts-auth"], summary="退出登录", request=None, responses=api_response_schema("Logout", {}))
    def post(self, request: Request) -> Response:
        _ = self
        logger.info("退出登录", extra=logger_extra({"user_id": request.user.id}))
        resp = response.success(None, message="已退出登录")
        _clear_jwt_cookie(resp)
        return resp


class TokenRefreshView(APIView):
    """刷新访问令牌：使用 refresh 获取新的 access"""

    permission_classes = [AllowAny]
    authentication_classes: list = []

    @extend_schema(
        summary="刷新访问令牌",
        tags=["accounts-auth"],
        request=inline_serializer(name="TokenRefreshRequest", fields={"refresh": serializers.CharField()}),
        responses=api_response_schema(
            "TokenRefresh",
            {"access": serializers.CharField(), "refresh": serializers.CharField()},
        ),
    )
    def post(self, request: Request) -> Response:
        _ = self
        payload = to_payload(request.data)
        refresh_token = payload.get("refresh") if isinstance(payload, dict) else None
        if not refresh_token or not isinstance(refresh_token, str):
            raise ValidationError(message="缺少 refresh 字段")
        try:
            token = RefreshToken(refresh_token)
            access = str(token.access_token)
        except SimpleJWTTokenError as exc:
            raise TokenError(message="刷新令牌无效或已过期，请重新登录") from exc

        resp = response.success({"access": access, "refresh": str(token)}, message="刷新成功")
        _set_jwt_cookie(resp, access_token=access)
        return resp


class ProfileView(APIView):
    """当前用户资料：获取/更新"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="获取当前用户资料",
        tags=["accounts-profile"],
        request=None,
        responses=api_response_schema("ProfileDetail", {"user": user_serializer()}),
    )
    def get(self, request: Request) -> Response:
        _ = self
        return response.success({"user": serialize_user(request.user)})

    @extend_schema(
        summary="更新个人资料",
        tags=["accounts-profile"],
        request=inline_serializer(
            name="ProfileUpdate",
            fields={
                "display_name": serializers.CharField(required=False, allow_blank=True),
                "email": serializers.EmailField(required=False),
                "avatar": serializers.CharField(required=False, allow_blank=True),
                "bio": serializers.CharField(required=False, allow_blank=True),
                "level": serializers.ChoiceField(choices=["beginner", "intermediate", "advanced"], required=False),
            },
        ),
        responses=api_response_schema("ProfileUpdate", {"user": user_serializer()}),
    )
    def patch(self, request: Request) -> Response:
        _ = self
        schema = ProfileUpdateSchema.from_dict(to_payload(request.data))
        user = UpdateProfileService().execute(request.user, schema)
        return response.success({"user": serialize_user(user)}, message="资料已更新")


class UserListView(APIView):
    """成员列表：按展示名排序，不含密码"""

    permission_classes = [AllowAny]

    @extend_schema(tags=["accounts-users"], summary="成员列表", request=None, responses=list_response("UserList", user_serializer()))
    def get(self, request: Request) -> Response:
        _ = request
        users = UserDirectoryService().list_users()
        return response.success({"items": [serialize_user(u) for u in users]})


class UserDetailView(APIView):
    """单个成员资料"""

    permission_classes = [AllowAny]

    @extend_schema(tags=["accounts-users"], summary="成员详情", request=None, responses=api_response_schema("UserDetail", {"user": user_serializer()}))
    def get(self, request: Request, user_id: str) -> Response:
        _ = request
        user = UserDirectoryService().get_user(parse_id(user_id, "用户 ID"))
        return response.success({"user": serialize_user(user)})


class UserRoleView(APIView):
    """管理员修改成员角色"""

    permission_classes = [IsAdmin]

    @extend_schema(
        tags=["accounts-users"],
        summary="修改成员角色",
        request=inline_serializer(
            name="RoleUpdateRequest",
            fields={"role": serializers.ChoiceField(choices=["member", "admin", "guest"])},
        ),
        responses=api_response_schema("UserRole", {"user": user_serializer()}),
    )
    def patch(self, request: Request, user_id: str) -> Response:
        _ = self
        target_id = parse_id(user_id, "用户 ID")
        schema = RoleUpdateSchema.from_dict(to_payload(request.data))
        user = ChangeRoleService().execute(request.user, target_id, schema)
        return response.success({"user": serialize_user(user)}, message="角色已更新")
