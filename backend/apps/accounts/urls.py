from __future__ import annotations

from django.urls import path

from .views import (
    LoginView,
    LogoutView,
    ProfileView,
    RegisterView,
    TokenRefreshView,
    UserDetailView,
    UserListView,
    UserRoleView,
)

# 账户相关路由：挂载在 /api/ 下，路径不带结尾斜杠
app_name = "accounts"

urlpatterns = [
    # 注册：公开接口，校验用户名/邮箱唯一，成功后直接登录
    path("register", RegisterView.as_view(), name="register"),
    # 登录：返回 JWT 并写入 HttpOnly Cookie，支持用户名或邮箱
    path("login", LoginView.as_view(), name="login"),
    path("logout", LogoutView.as_view(), name="logout"),
    path("token/refresh", TokenRefreshView.as_view(), name="token-refresh"),
    # 当前用户资料：查看/更新
    path("user", ProfileView.as_view(), name="profile"),
    # 成员目录
    path("users", UserListView.as_view(), name="user-list"),
    path("users/<str:user_id>", UserDetailView.as_view(), name="user-detail"),
    path("users/<str:user_id>/role", UserRoleView.as_view(), name="user-role"),
]
