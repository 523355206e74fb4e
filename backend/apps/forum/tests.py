from __future__ import annotations

from django.test import SimpleTestCase, override_settings
from rest_framework.test import APIClient, APITestCase

from apps.accounts.models import User
from apps.common.exceptions import AlreadyUpvotedError, PermissionDeniedError, ReplyNotInPostError
from apps.common.storage import MemoryStorage, _shared_memory_storage
from apps.common.tests_utils import AuthenticatedAPIMixin
from apps.forum.models import ForumPost, ForumReply, ReplyUpvote
from apps.forum.schemas import PostCreateSchema, ReplySchema
from apps.forum.services import (
    CreatePostService,
    CreateReplyService,
    DeletePostService,
    MarkBestAnswerService,
    UpvoteReplyService,
)


class ForumAPITestCase(AuthenticatedAPIMixin, APITestCase):
    """
    论坛接口测试：
    - 发帖/查看（浏览量）/修改/删除及作者权限
    - 回复、点赞去重、最佳答案唯一
    """

    @classmethod
    def setUpTestData(cls):
        cls.admin = cls.make_user("admin", role=User.Role.ADMIN)
        cls.alice = cls.make_user("alice")
        cls.bob = cls.make_user("bob")

    def setUp(self):
        self.alice_client = self.auth_client("alice")
        self.bob_client = self.auth_client("bob")

    def _create_post(self, client=None, **overrides) -> dict:
        payload = {"title": "DP 入门", "content": "如何理解状态转移？", "tags": ["dp", "basics"]}
        payload.update(overrides)
        resp = (client or self.alice_client).post("/api/forum", payload, format="json")
        self.assertEqual(resp.status_code, 201, resp.content)
        return resp.data["data"]["post"]

    def _reply(self, post_id: int, client=None, content: str = "先写递推式") -> dict:
        resp = (client or self.bob_client).post(f"/api/forum/{post_id}/replies", {"content": content}, format="json")
        self.assertEqual(resp.status_code, 201, resp.content)
        return resp.data["data"]["reply"]

    def test_create_requires_login_and_valid_body(self):
        self.assertEqual(APIClient().post("/api/forum", {"title": "x", "content": "y"}, format="json").status_code, 401)
        resp = self.alice_client.post("/api/forum", {"title": "", "content": "y"}, format="json")
        self.assertEqual(resp.status_code, 400)
        resp = self.alice_client.post("/api/forum", {"title": "x", "content": "<script>alert(1)</script>"}, format="json")
        self.assertEqual(resp.status_code, 400)

    def test_list_posts_newest_first_with_reply_count(self):
        first = self._create_post(title="first")
        second = self._create_post(title="second")
        self._reply(first["id"])
        self._reply(first["id"], content="再补充一点")
        resp = self.client.get("/api/forum")
        self.assertEqual(resp.status_code, 200)
        items = resp.data["data"]["items"]
        self.assertEqual([p["id"] for p in items], [second["id"], first["id"]])
        self.assertEqual(items[1]["reply_count"], 2)
        self.assertEqual(items[0]["reply_count"], 0)

    def test_view_increments_views_and_includes_replies(self):
        post = self._create_post()
        self._reply(post["id"], content="one")
        self._reply(post["id"], client=self.alice_client, content="two")
        self.client.get(f"/api/forum/{post['id']}")
        resp = self.client.get(f"/api/forum/{post['id']}")
        data = resp.data["data"]["post"]
        self.assertEqual(data["views"], 2)
        self.assertEqual([r["content"] for r in data["replies"]], ["one", "two"])
        self.assertEqual(self.client.get("/api/forum/999").status_code, 404)
        self.assertEqual(self.client.get("/api/forum/abc").status_code, 400)

    def test_only_author_or_admin_can_edit_post(self):
        post = self._create_post()
        resp = self.bob_client.patch(f"/api/forum/{post['id']}", {"title": "hijack"}, format="json")
        self.assertEqual(resp.status_code, 403)
        resp = self.alice_client.patch(f"/api/forum/{post['id']}", {"tags": ["graph"]}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["post"]["tags"], ["graph"])
        self.assertEqual(resp.data["data"]["post"]["title"], "DP 入门")
        resp = self.auth_client("admin").patch(f"/api/forum/{post['id']}", {"title": "moderated"}, format="json")
        self.assertEqual(resp.status_code, 200)

    def test_delete_post_cascades_replies_and_upvotes(self):
        post = self._create_post()
        reply = self._reply(post["id"])
        self.alice_client.post(f"/api/forum/replies/{reply['id']}/upvote")
        self.assertEqual(self.bob_client.delete(f"/api/forum/{post['id']}").status_code, 403)
        resp = self.alice_client.delete(f"/api/forum/{post['id']}")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(ForumPost.objects.filter(pk=post["id"]).exists())
        self.assertFalse(ForumReply.objects.filter(post_id=post["id"]).exists())
        self.assertFalse(ReplyUpvote.objects.exists())

    def test_reply_list_and_edit_permissions(self):
        post = self._create_post()
        reply = self._reply(post["id"])
        resp = self.client.get("/api/forum/replies")
        self.assertEqual([r["id"] for r in resp.data["data"]["items"]], [reply["id"]])
        self.assertEqual(
            self.alice_client.patch(f"/api/forum/replies/{reply['id']}", {"content": "x"}, format="json").status_code,
            403,
        )
        resp = self.bob_client.patch(f"/api/forum/replies/{reply['id']}", {"content": "改一下"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["reply"]["content"], "改一下")
        self.assertEqual(self.bob_client.delete(f"/api/forum/replies/{reply['id']}").status_code, 200)
        self.assertEqual(self.bob_client.delete(f"/api/forum/replies/{reply['id']}").status_code, 404)

    def test_reply_to_missing_post(self):
        resp = self.bob_client.post("/api/forum/404/replies", {"content": "hello"}, format="json")
        self.assertEqual(resp.status_code, 404)

    def test_upvote_once_per_user(self):
        post = self._create_post()
        reply = self._reply(post["id"])
        first = self.alice_client.post(f"/api/forum/replies/{reply['id']}/upvote")
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.data["data"]["reply"]["upvotes"], 1)
        again = self.alice_client.post(f"/api/forum/replies/{reply['id']}/upvote")
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.data["code"], AlreadyUpvotedError.default_code)
        self.assertEqual(ForumReply.objects.get(pk=reply["id"]).upvotes, 1)
        self.assertEqual(APIClient().post(f"/api/forum/replies/{reply['id']}/upvote").status_code, 401)

    def test_best_answer_moves_between_replies(self):
        post = self._create_post()
        a = self._reply(post["id"], content="A")
        b = self._reply(post["id"], content="B")
        url = f"/api/forum/{post['id']}/best-answer/"
        self.assertEqual(self.bob_client.post(url + str(a["id"])).status_code, 403)
        self.assertEqual(self.alice_client.post(url + str(a["id"])).status_code, 200)
        resp = self.alice_client.post(url + str(b["id"]))
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["data"]["reply"]["is_best_answer"])
        self.assertFalse(ForumReply.objects.get(pk=a["id"]).is_best_answer)
        self.assertEqual(ForumReply.objects.filter(post_id=post["id"], is_best_answer=True).count(), 1)
        # 重复采纳同一回复
        self.assertEqual(self.alice_client.post(url + str(b["id"])).status_code, 200)

    def test_best_answer_reply_must_belong_to_post(self):
        post = self._create_post()
        other = self._create_post(title="other")
        reply = self._reply(other["id"])
        resp = self.alice_client.post(f"/api/forum/{post['id']}/best-answer/{reply['id']}")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.data["code"], ReplyNotInPostError.default_code)


class ForumServiceMemoryTests(SimpleTestCase):
    """论坛服务在内存存储上的行为"""

    def setUp(self):
        self.storage = MemoryStorage()
        users = self.storage.users
        self.author = users.create_user(username="author", email="author@example.com", password="Passw0rd123")
        self.other = users.create_user(username="other", email="other@example.com", password="Passw0rd123")
        self.post = CreatePostService(self.storage).execute(
            self.author, PostCreateSchema.from_dict({"title": "Graphs", "content": "BFS vs DFS", "tags": ["graph"]})
        )

    def _reply(self, user, content: str):
        return CreateReplyService(self.storage).execute(user, self.post.id, ReplySchema.from_dict({"content": content}))

    def test_best_answer_a_then_b(self):
        a = self._reply(self.other, "A")
        b = self._reply(self.other, "B")
        MarkBestAnswerService(self.storage).execute(self.author, self.post.id, a.id)
        MarkBestAnswerService(self.storage).execute(self.author, self.post.id, b.id)
        self.assertFalse(self.storage.replies.get_by_id(a.id).is_best_answer)
        self.assertTrue(self.storage.replies.get_by_id(b.id).is_best_answer)

    def test_best_answer_by_non_author_rejected(self):
        reply = self._reply(self.other, "A")
        with self.assertRaises(PermissionDeniedError):
            MarkBestAnswerService(self.storage).execute(self.other, self.post.id, reply.id)
        self.assertFalse(reply.is_best_answer)

    def test_duplicate_upvote_keeps_count(self):
        reply = self._reply(self.other, "A")
        UpvoteReplyService(self.storage).execute(self.author, reply.id)
        with self.assertRaises(AlreadyUpvotedError):
            UpvoteReplyService(self.storage).execute(self.author, reply.id)
        self.assertEqual(self.storage.replies.get_by_id(reply.id).upvotes, 1)
        self.assertEqual(self.storage.upvotes.count(reply_id=reply.id), 1)

    def test_delete_post_removes_replies(self):
        reply = self._reply(self.other, "A")
        UpvoteReplyService(self.storage).execute(self.author, reply.id)
        DeletePostService(self.storage).execute(self.author, self.post.id)
        self.assertEqual(self.storage.posts.count(), 0)
        self.assertEqual(self.storage.replies.count(post_id=self.post.id), 0)
        self.assertEqual(self.storage.upvotes.count(), 0)


@override_settings(CLUB_STORAGE_BACKEND="memory")
class ForumMemoryBackendAPITestCase(APITestCase):
    """
    内存存储下的完整接口链路：注册 → 登录 → 发帖 → 回复 → 采纳
    - 认证通过内存存储加载用户，数据库中不产生任何记录
    """

    def setUp(self):
        _shared_memory_storage.cache_clear()
        self.addCleanup(_shared_memory_storage.cache_clear)

    def _member(self, username: str) -> APIClient:
        payload = {"username": username, "email": f"{username}@example.com", "password": "Passw0rd123"}
        resp = self.client.post("/api/register", payload, format="json")
        self.assertEqual(resp.status_code, 201, resp.content)
        resp = self.client.post("/api/login", {"identifier": username, "password": "Passw0rd123"}, format="json")
        self.assertEqual(resp.status_code, 200, resp.content)
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['data']['access']}")
        return client

    def test_post_reply_and_best_answer(self):
        alice = self._member("alice")
        bob = self._member("bob")
        self.assertEqual(alice.get("/api/user").data["data"]["user"]["username"], "alice")

        post = alice.post("/api/forum", {"title": "图论", "content": "最短路怎么选？", "tags": ["graph"]}, format="json")
        self.assertEqual(post.status_code, 201, post.content)
        post_id = post.data["data"]["post"]["id"]
        reply = bob.post(f"/api/forum/{post_id}/replies", {"content": "稀疏图用 Dijkstra"}, format="json")
        self.assertEqual(reply.status_code, 201, reply.content)
        reply_id = reply.data["data"]["reply"]["id"]

        url = f"/api/forum/{post_id}/best-answer/{reply_id}"
        self.assertEqual(bob.post(url).status_code, 403)
        resp = alice.post(url)
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertTrue(resp.data["data"]["reply"]["is_best_answer"])

        detail = self.client.get(f"/api/forum/{post_id}").data["data"]["post"]
        self.assertEqual([r["is_best_answer"] for r in detail["replies"]], [True])
        self.assertFalse(User.objects.exists())
        self.assertFalse(ForumPost.objects.exists())

    def test_unknown_token_user_is_401(self):
        client = self._member("alice")
        _shared_memory_storage.cache_clear()
        self.assertEqual(client.get("/api/user").status_code, 401)
