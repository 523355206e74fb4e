from __future__ import annotations

from rest_framework.test import APIClient, APITestCase

from apps.accounts.models import User
from apps.common.tests_utils import AuthenticatedAPIMixin
from apps.resources.models import Resource


class ResourcesAPITestCase(AuthenticatedAPIMixin, APITestCase):
    """学习资源接口：公开读取，管理员维护"""

    @classmethod
    def setUpTestData(cls):
        cls.admin = cls.make_user("admin", role=User.Role.ADMIN)
        cls.member = cls.make_user("member")

    def setUp(self):
        self.admin_client = self.auth_client("admin")

    def _create(self, **overrides) -> dict:
        payload = {
            "title": "二分查找讲义",
            "resourceType": "guide",
            "description": "从边界开始",
            "link": "https://example.com/binary-search",
        }
        payload.update(overrides)
        resp = self.admin_client.post("/api/resources", payload, format="json")
        self.assertEqual(resp.status_code, 201, resp.content)
        return resp.data["data"]["resource"]

    def test_admin_creates_and_anyone_reads(self):
        created = self._create()
        self.assertEqual(created["resource_type"], "guide")
        self.assertEqual(created["user_id"], self.admin.id)
        resp = APIClient().get(f"/api/resources/{created['id']}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["resource"]["title"], "二分查找讲义")

    def test_member_cannot_write(self):
        created = self._create()
        member = self.auth_client("member")
        self.assertEqual(member.post("/api/resources", {"title": "x", "resource_type": "video"}, format="json").status_code, 403)
        self.assertEqual(member.patch(f"/api/resources/{created['id']}", {"title": "x"}, format="json").status_code, 403)
        self.assertEqual(member.delete(f"/api/resources/{created['id']}").status_code, 403)
        self.assertEqual(APIClient().delete(f"/api/resources/{created['id']}").status_code, 401)

    def test_list_newest_first_and_filter_by_type(self):
        first = self._create(title="one")
        second = self._create(title="two", resourceType="video")
        items = self.client.get("/api/resources").data["data"]["items"]
        self.assertEqual([r["id"] for r in items], [second["id"], first["id"]])
        videos = self.client.get("/api/resources?type=video").data["data"]["items"]
        self.assertEqual([r["id"] for r in videos], [second["id"]])
        self.assertEqual(self.client.get("/api/resources?type=podcast").status_code, 400)

    def test_validation(self):
        bad_type = self.admin_client.post("/api/resources", {"title": "x", "resource_type": "book"}, format="json")
        self.assertEqual(bad_type.status_code, 400)
        bad_link = self.admin_client.post(
            "/api/resources", {"title": "x", "resource_type": "guide", "link": "not a url"}, format="json"
        )
        self.assertEqual(bad_link.status_code, 400)

    def test_patch_and_delete(self):
        created = self._create()
        resp = self.admin_client.patch(f"/api/resources/{created['id']}", {"resource_type": "practice"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["resource"]["resource_type"], "practice")
        self.assertEqual(resp.data["data"]["resource"]["title"], "二分查找讲义")
        self.assertEqual(self.admin_client.delete(f"/api/resources/{created['id']}").status_code, 200)
        self.assertFalse(Resource.objects.filter(pk=created["id"]).exists())
        self.assertEqual(self.admin_client.get(f"/api/resources/{created['id']}").status_code, 404)
