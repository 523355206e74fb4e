from __future__ import annotations

from django.conf import settings
from unittest import mock

from django.test import SimpleTestCase
from rest_framework.test import APIClient, APITestCase

from apps.accounts.models import User
from apps.accounts.schemas import LoginSchema, ProfileUpdateSchema, RegisterSchema
from apps.accounts.services import LoginService, RegisterService, UpdateProfileService
from apps.common.exceptions import ConflictError, InvalidCredentialsError, ValidationError
from apps.common.storage import MemoryStorage
from apps.common.tests_utils import AuthenticatedAPIMixin


class AccountsAPITestCase(AuthenticatedAPIMixin, APITestCase):
    """
    账户模块接口冒烟测试：
    - 覆盖注册、登录、Cookie 认证、资料修改、成员目录、角色调整的主干链路
    """

    @classmethod
    def setUpTestData(cls):
        cls.admin = cls.make_user("admin", role=User.Role.ADMIN)
        cls.user = cls.make_user("tester", display_name="Tester")

    def test_register_returns_user_without_password(self):
        resp = self.client.post(
            "/api/register",
            {"username": "newbie", "email": "Newbie@Example.com", "password": "Passw0rd123"},
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        user = resp.data["data"]["user"]
        self.assertEqual(user["username"], "newbie")
        self.assertEqual(user["email"], "newbie@example.com")
        self.assertEqual(user["display_name"], "newbie")
        self.assertEqual(user["role"], "member")
        self.assertEqual(user["level"], "beginner")
        self.assertNotIn("password", user)
        self.assertTrue(resp.data["data"]["access"])
        stored = User.objects.get(username="newbie")
        self.assertNotEqual(stored.password, "Passw0rd123")
        self.assertTrue(stored.check_password("Passw0rd123"))

    def test_register_duplicate_username_conflict(self):
        resp = self.client.post(
            "/api/register",
            {"username": "tester", "email": "other@example.com", "password": "Passw0rd123"},
            format="json",
        )
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(User.objects.filter(username="tester").count(), 1)

    def test_register_rejects_non_object_body_and_unknown_fields(self):
        resp = self.client.post("/api/register", ["not", "an", "object"], format="json")
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post(
            "/api/register",
            {"username": "x1234", "email": "x@example.com", "password": "Passw0rd123", "is_staff": True},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)

    def test_register_missing_field_is_400(self):
        resp = self.client.post("/api/register", {"username": "lonely"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("email", resp.data["message"])

    def test_login_wrong_password_is_401(self):
        resp = self.client.post("/api/login", {"identifier": "tester", "password": "Wrong12345"}, format="json")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.data["code"], InvalidCredentialsError.default_code)

    def test_login_by_email_sets_http_only_cookie(self):
        resp = self.client.post(
            "/api/login",
            {"identifier": "tester@example.com", "password": self.default_password},
            format="json",
        )
        self.assertEqual(resp.status_code, 200)
        cookie = resp.cookies[settings.JWT_ACCESS_COOKIE_NAME]
        self.assertTrue(cookie["httponly"])
        # 仅凭 Cookie 即可访问需要登录的接口
        me = self.client.get("/api/user")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.data["data"]["user"]["username"], "tester")

    def test_logout_clears_cookie(self):
        self.api_login("tester")
        resp = self.client.post("/api/logout")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.cookies[settings.JWT_ACCESS_COOKIE_NAME].value, "")

    def test_current_user_requires_login(self):
        resp = APIClient().get("/api/user")
        self.assertEqual(resp.status_code, 401)

    def test_invalid_token_is_401(self):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        resp = client.get("/api/user")
        self.assertEqual(resp.status_code, 401)

    def test_patch_profile_updates_only_given_fields(self):
        client = self.auth_client("tester")
        resp = client.patch("/api/user", {"bio": "I like graphs", "level": "advanced"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.user.refresh_from_db()
        self.assertEqual(self.user.bio, "I like graphs")
        self.assertEqual(self.user.level, "advanced")
        self.assertEqual(self.user.display_name, "Tester")

    def test_patch_profile_email_conflict(self):
        client = self.auth_client("tester")
        resp = client.patch("/api/user", {"email": "admin@example.com"}, format="json")
        self.assertEqual(resp.status_code, 409)

    def test_users_listed_by_display_name(self):
        self.make_user("zed", display_name="Aaron")
        resp = self.client.get("/api/users")
        self.assertEqual(resp.status_code, 200)
        names = [u["display_name"] for u in resp.data["data"]["items"]]
        self.assertEqual(names, sorted(names))
        self.assertTrue(all("password" not in u for u in resp.data["data"]["items"]))

    def test_user_detail_malformed_and_missing_id(self):
        self.assertEqual(self.client.get("/api/users/abc").status_code, 400)
        self.assertEqual(self.client.get("/api/users/99999").status_code, 404)
        resp = self.client.get(f"/api/users/{self.user.id}")
        self.assertEqual(resp.status_code, 200)

    def test_change_role_admin_only(self):
        member = self.auth_client("tester")
        resp = member.patch(f"/api/users/{self.user.id}/role", {"role": "admin"}, format="json")
        self.assertEqual(resp.status_code, 403)
        admin = self.auth_client("admin")
        resp = admin.patch(f"/api/users/{self.user.id}/role", {"role": "guest"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, "guest")
        resp = admin.patch(f"/api/users/{self.user.id}/role", {"role": "owner"}, format="json")
        self.assertEqual(resp.status_code, 400)

    def test_create_superuser_gets_admin_role(self):
        root = User.objects.create_superuser(username="root", email="root@example.com", password="Passw0rd123")
        self.assertTrue(root.is_admin)


class AccountServiceMemoryTests(SimpleTestCase):
    """账户服务在内存存储上的行为"""

    def setUp(self):
        self.storage = MemoryStorage()

    def _register(self, username: str, email: str) -> User:
        schema = RegisterSchema.from_dict({"username": username, "email": email, "password": "Passw0rd123"})
        return RegisterService(self.storage).execute(schema)

    def test_register_and_login(self):
        user = self._register("alice", "alice@example.com")
        self.assertEqual(user.id, 1)
        data = LoginService(self.storage).execute(
            LoginSchema.from_dict({"username": "alice", "password": "Passw0rd123"})
        )
        self.assertEqual(data["user"]["id"], user.id)
        self.assertIn("access", data)

    def test_duplicate_email_conflict(self):
        self._register("alice", "alice@example.com")
        with self.assertRaises(ConflictError):
            self._register("alice2", "ALICE@example.com")
        self.assertEqual(self.storage.users.count(), 1)

    def test_wrong_password(self):
        self._register("alice", "alice@example.com")
        with self.assertRaises(InvalidCredentialsError):
            LoginService(self.storage).execute(LoginSchema.from_dict({"identifier": "alice", "password": "nope12345"}))

    def test_profile_patch_with_empty_body_is_rejected(self):
        with self.assertRaises(ValidationError):
            ProfileUpdateSchema.from_dict({})

    def test_profile_update(self):
        user = self._register("alice", "alice@example.com")
        schema = ProfileUpdateSchema.from_dict({"displayName": "Alice L."})
        updated = UpdateProfileService(self.storage).execute(user, schema)
        self.assertEqual(updated.display_name, "Alice L.")
        self.assertEqual(self.storage.users.get_by_id(user.id).display_name, "Alice L.")

    def test_concurrent_duplicate_maps_unique_violation_to_conflict(self):
        self._register("alice", "alice@example.com")
        users = self.storage.users
        # 另一请求在唯一性预检之后抢先写入：预检放行，落库时撞上唯一约束
        with mock.patch.object(users, "username_exists", return_value=False), mock.patch.object(
            users, "email_exists", return_value=False
        ):
            with self.assertRaises(ConflictError):
                self._register("alice", "alice@example.com")
        self.assertEqual(users.count(), 1)
