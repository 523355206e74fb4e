from __future__ import annotations

from rest_framework.test import APIClient

from apps.accounts.models import User


class AuthenticatedAPIMixin:
    """
    提供统一的建号、登录与认证客户端构造工具，减少各测试用例的重复代码
    """

    login_url: str = "/api/login"
    default_password: str = "Passw0rd123"
    client: APIClient  # 由 APITestCase 提供

    @classmethod
    def make_user(cls, username: str, *, role: str = User.Role.MEMBER, **extra) -> User:
        """直接落库创建用户（默认成员角色，统一测试密码）"""
        extra.setdefault("email", f"{username}@example.com")
        return User.objects.create_user(
            username=username,
            password=cls.default_password,
            role=role,
            **extra,
        )

    def api_login(self, identifier: str, password: str | None = None, expect_status: int = 200) -> str:
        """
        登录并返回访问令牌，默认期望 200 状态
        """
        resp = self.client.post(
            self.login_url,
            {"identifier": identifier, "password": password or self.default_password},
            format="json",
        )
        if resp.status_code != expect_status:
            raise AssertionError(f"登录接口返回 {resp.status_code}，期望 {expect_status}，响应：{resp.content}")
        return resp.data["data"]["access"]

    def auth_client(self, identifier: str, password: str | None = None) -> APIClient:
        """
        构造附带 Authorization 头的 APIClient
        """
        token = self.api_login(identifier, password)
        client = APIClient()
        client.raise_request_exception = False
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        return client
