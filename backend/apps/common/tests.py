# -*- coding: utf-8 -*-
"""
公共模块单测：
- 存储契约：同一组用例分别跑在内存存储与数据库存储上
- 存储后端选择与内存存储的并发读写
- 路由与 OpenAPI 文档生成
- 通用校验函数
"""

from __future__ import annotations

import threading
from datetime import timedelta

from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import resolve
from django.utils import timezone

from apps.common.base.base_schema import BaseSchema
from apps.common.base.memory_repo import MemoryRepo
from apps.common.exceptions import AlreadyRegisteredError, NotFoundError, ValidationError
from apps.common.schema_utils import forum_post_serializer, forum_reply_serializer, list_response
from apps.common.storage import DatabaseStorage, MemoryStorage, get_storage
from apps.common.utils.validators import ensure_int, parse_id, validate_password_strength, validate_tags
from apps.events.models import ContestResult
from apps.events.services import DeleteEventService, RegisterForEventService
from apps.forum.services import DeletePostService, ForumQueryService, MarkBestAnswerService
from apps.leaderboard.services import LeaderboardService


class StorageContractMixin:
    """
    存储契约用例：子类提供 make_storage()
    - 聚合、最佳答案唯一、级联删除、重复报名、事务回滚
    """

    def make_storage(self):
        raise NotImplementedError

    def setUp(self):
        super().setUp()
        self.storage = self.make_storage()
        users = self.storage.users
        self.u1 = users.create_user(username="u1", email="u1@example.com", password="Passw0rd123")
        self.u2 = users.create_user(username="u2", email="u2@example.com", password="Passw0rd123")
        self.u3 = users.create_user(username="u3", email="u3@example.com", password="Passw0rd123")

    def _event(self, title="Round", event_type="contest", days=1):
        return self.storage.events.create(
            {
                "title": title,
                "event_type": event_type,
                "date": timezone.now() + timedelta(days=days),
                "duration": 60,
            }
        )

    def _post(self, user, tags=None):
        return self.storage.posts.create({"title": "t", "content": "c", "user_id": user.id, "tags": tags or []})

    def _reply(self, post, user, content="r"):
        return self.storage.replies.create({"post_id": post.id, "user_id": user.id, "content": content})

    def test_ids_auto_increment_and_lookup(self):
        first = self._event("A")
        second = self._event("B")
        self.assertGreater(second.id, first.id)
        self.assertEqual(self.storage.events.get_by_id(first.id).title, "A")
        with self.assertRaises(NotFoundError):
            self.storage.events.get_by_id(second.id + 100)

    def test_events_ordered_by_date(self):
        late = self._event("late", days=5)
        early = self._event("early", days=1)
        self.assertEqual([e.id for e in self.storage.events.list()], [early.id, late.id])

    def test_leaderboard_aggregation_example(self):
        r1, r2 = self._event("R1"), self._event("R2")
        results = self.storage.results
        results.create({"event_id": r1.id, "user_id": self.u2.id, "score": 80})
        results.create({"event_id": r2.id, "user_id": self.u2.id, "score": 60})
        results.create({"event_id": r1.id, "user_id": self.u3.id, "score": 50})
        board = LeaderboardService(self.storage).build()
        self.assertEqual(
            [(e.user_id, e.score, e.contest_count) for e in board],
            [(self.u2.id, 140, 2), (self.u3.id, 50, 1)],
        )

    def test_adjustments_added_to_score(self):
        event = self._event()
        self.storage.results.create({"event_id": event.id, "user_id": self.u1.id, "score": 10})
        self.storage.adjustments.create({"user_id": self.u1.id, "delta": -4, "reason": ""})
        self.storage.adjustments.create({"user_id": self.u2.id, "delta": 3, "reason": ""})
        board = {e.user_id: e for e in LeaderboardService(self.storage).build()}
        self.assertEqual(board[self.u1.id].score, 6)
        self.assertEqual(board[self.u2.id].contest_count, 0)

    def test_best_answer_moves(self):
        post = self._post(self.u1)
        a = self._reply(post, self.u2, "A")
        b = self._reply(post, self.u3, "B")
        MarkBestAnswerService(self.storage).execute(self.u1, post.id, a.id)
        MarkBestAnswerService(self.storage).execute(self.u1, post.id, b.id)
        flags = {r.id: r.is_best_answer for r in self.storage.replies.for_post(post.id)}
        self.assertEqual(flags, {a.id: False, b.id: True})

    def test_delete_post_removes_replies(self):
        post = self._post(self.u1)
        other = self._post(self.u2)
        self._reply(post, self.u2)
        kept = self._reply(other, self.u1)
        DeletePostService(self.storage).execute(self.u1, post.id)
        self.assertEqual(self.storage.replies.count(post_id=post.id), 0)
        self.assertEqual([r.id for r in self.storage.replies.list()], [kept.id])

    def test_delete_event_removes_registrations_and_results(self):
        event = self._event()
        RegisterForEventService(self.storage).execute(self.u1, event.id)
        self.storage.results.create({"event_id": event.id, "user_id": self.u1.id, "score": 1})
        DeleteEventService(self.storage).execute(event.id)
        self.assertEqual(self.storage.registrations.count(), 0)
        self.assertEqual(self.storage.results.count(), 0)

    def test_duplicate_registration_rejected(self):
        event = self._event()
        RegisterForEventService(self.storage).execute(self.u1, event.id)
        with self.assertRaises(AlreadyRegisteredError):
            RegisterForEventService(self.storage).execute(self.u1, event.id)
        self.assertEqual(self.storage.registrations.count(event_id=event.id, user_id=self.u1.id), 1)

    def test_atomic_rolls_back_on_error(self):
        before = self.storage.events.count()
        with self.assertRaises(RuntimeError):
            with self.storage.atomic():
                self._event("doomed")
                raise RuntimeError("boom")
        self.assertEqual(self.storage.events.count(), before)

    def test_increment_counter(self):
        post = self._post(self.u1)
        self.storage.posts.increment(post, "views")
        self.storage.posts.increment(post, "views")
        self.assertEqual(self.storage.posts.get_by_id(post.id).views, 2)


class MemoryStorageContractTests(StorageContractMixin, SimpleTestCase):
    def make_storage(self):
        return MemoryStorage()

    def test_rollback_restores_updated_fields(self):
        post = self._post(self.u1)
        with self.assertRaises(RuntimeError):
            with self.storage.atomic():
                self.storage.posts.update(post, {"title": "changed"})
                raise RuntimeError("boom")
        self.assertEqual(post.title, "t")
        self.assertEqual(self.storage.posts.get_by_id(post.id).title, "t")


class ResultsByPositionDesc(MemoryRepo[ContestResult]):
    model = ContestResult
    ordering = ("-position", "id")


class MemoryOrderingTests(SimpleTestCase):
    def test_null_sorts_last_in_both_directions(self):
        repo = ResultsByPositionDesc()
        for position in (None, 2, 1):
            repo.create({"event_id": 1, "user_id": 1, "score": 0, "position": position})
        self.assertEqual([r.position for r in repo.list()], [2, 1, None])
        repo.ordering = ("position", "id")
        self.assertEqual([r.position for r in repo.list()], [1, 2, None])


class MemoryConcurrencyTests(SimpleTestCase):
    """内存存储：读与并发写事务共用一把锁"""

    def setUp(self):
        self.storage = MemoryStorage()
        self.user = self.storage.users.create_user(username="u1", email="u1@example.com", password="Passw0rd123")
        self.post = self.storage.posts.create({"title": "t", "content": "c", "user_id": self.user.id, "tags": ["dp"]})

    def _write(self):
        with self.storage.atomic():
            self.storage.replies.create({"post_id": self.post.id, "user_id": self.user.id, "content": "r"})
            self.storage.adjustments.create({"user_id": self.user.id, "delta": 1, "reason": ""})

    def test_reads_while_writer_commits(self):
        errors = []
        stop = threading.Event()

        def writer():
            try:
                for _ in range(300):
                    if stop.is_set():
                        break
                    self._write()
            except Exception as exc:
                errors.append(exc)

        thread = threading.Thread(target=writer)
        thread.start()
        try:
            for _ in range(100):
                replies = ForumQueryService(self.storage).list_replies()
                ForumQueryService(self.storage).list_posts()
                board = LeaderboardService(self.storage).build()
                if board:
                    self.assertLessEqual(board[0].score, len(self.storage.replies.list()))
                self.assertTrue(all(r.post_id == self.post.id for r in replies))
        finally:
            stop.set()
            thread.join(10)
        self.assertEqual(errors, [])

    def test_reader_never_sees_rolled_back_rows(self):
        started = threading.Event()
        release = threading.Event()
        done = threading.Event()
        seen = []

        def writer():
            try:
                with self.storage.atomic():
                    self.storage.replies.create({"post_id": self.post.id, "user_id": self.user.id, "content": "draft"})
                    started.set()
                    release.wait(5)
                    raise RuntimeError("rollback")
            except RuntimeError:
                pass

        def reader():
            seen.append(len(ForumQueryService(self.storage).list_replies()))
            done.set()

        writer_thread = threading.Thread(target=writer)
        writer_thread.start()
        self.assertTrue(started.wait(5))
        reader_thread = threading.Thread(target=reader)
        reader_thread.start()
        # 事务未结束时读方阻塞
        self.assertFalse(done.wait(0.2))
        release.set()
        writer_thread.join(5)
        reader_thread.join(5)
        self.assertEqual(seen, [0])


class DatabaseStorageContractTests(StorageContractMixin, TestCase):
    def make_storage(self):
        return DatabaseStorage()


class StorageSelectionTests(SimpleTestCase):
    @override_settings(CLUB_STORAGE_BACKEND="memory")
    def test_memory_backend_is_shared(self):
        self.assertIsInstance(get_storage(), MemoryStorage)
        self.assertIs(get_storage(), get_storage())

    @override_settings(CLUB_STORAGE_BACKEND="database")
    def test_database_backend(self):
        self.assertIsInstance(get_storage(), DatabaseStorage)

    @override_settings(CLUB_STORAGE_BACKEND="redis")
    def test_unknown_backend(self):
        with self.assertRaises(ImproperlyConfigured):
            get_storage()


class ValidatorTests(SimpleTestCase):
    def test_parse_id(self):
        self.assertEqual(parse_id("12"), 12)
        for bad in ("abc", "0", "-1", "1.5", "", "²", "٣", "9" * 30):
            with self.assertRaises(ValidationError):
                parse_id(bad)

    def test_ensure_int_rejects_bool_and_float(self):
        self.assertEqual(ensure_int("42", field_name="n"), 42)
        for bad in (True, 1.5, "x"):
            with self.assertRaises(ValidationError):
                ensure_int(bad, field_name="n")
        with self.assertRaises(ValidationError):
            ensure_int(0, field_name="n", min_value=1)

    def test_ensure_int_bounded_to_integer_column(self):
        self.assertEqual(ensure_int(2**31 - 1, field_name="n"), 2**31 - 1)
        self.assertEqual(ensure_int(-(2**31), field_name="n"), -(2**31))
        for bad in (2**31, -(2**31) - 1, 10**30, "9" * 40, "²"):
            with self.assertRaises(ValidationError):
                ensure_int(bad, field_name="n")
        self.assertEqual(ensure_int(2**40, field_name="n", max_value=2**63 - 1), 2**40)

    def test_validate_tags(self):
        self.assertEqual(validate_tags([" dp ", "dp", "", "graph"]), ["dp", "graph"])
        with self.assertRaises(ValidationError):
            validate_tags("dp")

    def test_password_strength(self):
        validate_password_strength("Passw0rd123")
        for bad in ("short1", "onlyletters", "1234567890"):
            with self.assertRaises(ValidationError):
                validate_password_strength(bad)


class SchemaParsingTests(SimpleTestCase):
    def test_unknown_and_missing_fields(self):
        from apps.forum.schemas import PostCreateSchema

        with self.assertRaises(ValidationError):
            PostCreateSchema.from_dict({"title": "t", "content": "c", "pinned": True})
        with self.assertRaises(ValidationError):
            PostCreateSchema.from_dict({"title": "t"})
        with self.assertRaises(ValidationError):
            PostCreateSchema.from_dict(["not", "an", "object"])

    def test_partial_update_keeps_only_provided(self):
        from apps.forum.schemas import PostUpdateSchema

        schema = PostUpdateSchema.from_dict({"title": " New "})
        self.assertIsInstance(schema, BaseSchema)
        self.assertEqual(schema.provided_fields(), {"title": "New"})


class ApiRoutingTests(TestCase):
    def test_every_app_is_routed(self):
        for path in ("/api/register", "/api/events", "/api/leaderboard", "/api/forum", "/api/forum/replies", "/api/resources"):
            self.assertIsNotNone(resolve(path))

    def test_openapi_schema_renders(self):
        resp = self.client.get("/api/schema/")
        self.assertEqual(resp.status_code, 200)
        self.assertIn(b"ForumPost", resp.content)


class SchemaUtilsTests(SimpleTestCase):
    def test_cached_serializer_can_be_nested_repeatedly(self):
        self.assertIsNot(forum_reply_serializer(), forum_reply_serializer())
        list_response("NestedReplyListA", forum_reply_serializer())
        list_response("NestedReplyListB", forum_reply_serializer())
        list_response("NestedPostList", forum_post_serializer())
