from __future__ import annotations

from collections import Counter
from datetime import timedelta

from django.test import SimpleTestCase
from django.utils import timezone
from rest_framework.test import APIClient, APITestCase

from apps.accounts.models import User
from apps.common.tests_utils import AuthenticatedAPIMixin
from apps.events.models import ContestResult, Event
from apps.forum.models import ForumPost
from apps.leaderboard.models import ScoreAdjustment
from apps.leaderboard.services import LeaderboardEntry, assign_ranks, pick_top_tag


class RankingHelperTests(SimpleTestCase):
    def test_pick_top_tag(self):
        self.assertIsNone(pick_top_tag(None))
        self.assertIsNone(pick_top_tag(Counter()))
        self.assertEqual(pick_top_tag(Counter({"graph": 2, "dp": 1})), "graph")
        # 次数相同按字母序
        self.assertEqual(pick_top_tag(Counter({"graph": 2, "dp": 2})), "dp")

    def test_assign_ranks_shares_rank_on_tie(self):
        entries = [
            LeaderboardEntry(user_id=i, username=f"u{i}", display_name="", avatar="", level="beginner",
                             score=score, contest_count=1)
            for i, score in enumerate((100, 80, 80, 50), start=1)
        ]
        self.assertEqual([e.rank for e in assign_ranks(entries)], [1, 2, 2, 4])


class LeaderboardAPITestCase(AuthenticatedAPIMixin, APITestCase):
    """排行榜接口：聚合、排序、名次、管理员修正"""

    @classmethod
    def setUpTestData(cls):
        cls.admin = cls.make_user("admin", role=User.Role.ADMIN)
        cls.alice = cls.make_user("alice", display_name="Alice")
        cls.bob = cls.make_user("bob")
        cls.carol = cls.make_user("carol")
        start = timezone.now() + timedelta(days=3)
        cls.round1 = Event.objects.create(title="Round 1", event_type="contest", date=start, duration=90)
        cls.round2 = Event.objects.create(title="Round 2", event_type="contest", date=start, duration=90)

    def _result(self, event, user, score):
        return ContestResult.objects.create(event=event, user=user, score=score)

    def test_empty_board(self):
        resp = self.client.get("/api/leaderboard")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["items"], [])

    def test_aggregates_scores_per_user(self):
        self._result(self.round1, self.alice, 80)
        self._result(self.round2, self.alice, 60)
        self._result(self.round1, self.bob, 50)
        items = self.client.get("/api/leaderboard").data["data"]["items"]
        self.assertEqual(
            [(e["user_id"], e["score"], e["contest_count"], e["rank"]) for e in items],
            [(self.alice.id, 140, 2, 1), (self.bob.id, 50, 1, 2)],
        )
        self.assertEqual(items[0]["display_name"], "Alice")

    def test_ties_ordered_by_contest_count_then_user_id(self):
        self._result(self.round1, self.bob, 30)
        self._result(self.round2, self.bob, 20)
        self._result(self.round1, self.carol, 50)
        self._result(self.round1, self.alice, 50)
        items = self.client.get("/api/leaderboard").data["data"]["items"]
        self.assertEqual([e["user_id"] for e in items], [self.bob.id, self.alice.id, self.carol.id])
        self.assertEqual([e["rank"] for e in items], [1, 1, 1])

    def test_top_problem_from_post_tags(self):
        self._result(self.round1, self.alice, 10)
        ForumPost.objects.create(title="a", content="a", user=self.alice, tags=["graph", "dp"])
        ForumPost.objects.create(title="b", content="b", user=self.alice, tags=["graph"])
        entry = self.client.get(f"/api/leaderboard/{self.alice.id}").data["data"]["entry"]
        self.assertEqual(entry["top_problem"], "graph")

    def test_entry_for_user_without_scores_is_404(self):
        self.assertEqual(self.client.get(f"/api/leaderboard/{self.carol.id}").status_code, 404)
        self.assertEqual(self.client.get("/api/leaderboard/x1").status_code, 400)

    def test_admin_adjustment(self):
        self._result(self.round1, self.alice, 40)
        admin = self.auth_client("admin")
        resp = admin.post(f"/api/leaderboard/{self.alice.id}", {"delta": 15, "reason": "出题奖励"}, format="json")
        self.assertEqual(resp.status_code, 200, resp.content)
        entry = resp.data["data"]["entry"]
        self.assertEqual(entry["score"], 55)
        self.assertEqual(entry["contest_count"], 1)
        self.assertEqual(ScoreAdjustment.objects.get().created_by_id, self.admin.id)

        # 仅有修正、没有成绩的用户也会上榜
        resp = admin.post(f"/api/leaderboard/{self.bob.id}", {"score": 5}, format="json")
        self.assertEqual(resp.data["data"]["entry"]["contest_count"], 0)

    def test_adjustment_validation_and_permissions(self):
        admin = self.auth_client("admin")
        self.assertEqual(admin.post(f"/api/leaderboard/{self.alice.id}", {"delta": 0}, format="json").status_code, 400)
        self.assertEqual(admin.post(f"/api/leaderboard/{self.alice.id}", {"delta": 10**30}, format="json").status_code, 400)
        self.assertFalse(ScoreAdjustment.objects.exists())
        self.assertEqual(admin.post("/api/leaderboard/9999", {"delta": 3}, format="json").status_code, 404)
        member = self.auth_client("alice")
        self.assertEqual(member.post(f"/api/leaderboard/{self.alice.id}", {"delta": 3}, format="json").status_code, 403)
        self.assertEqual(APIClient().post(f"/api/leaderboard/{self.alice.id}", {"delta": 3}, format="json").status_code, 401)
