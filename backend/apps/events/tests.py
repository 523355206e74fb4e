from __future__ import annotations

from rest_framework.test import APIClient, APITestCase

from apps.accounts.models import User
from apps.common.exceptions import AlreadyRegisteredError, NotContestEventError
from apps.common.tests_utils import AuthenticatedAPIMixin
from apps.events.models import ContestResult, Event, EventRegistration


class EventsAPITestCase(AuthenticatedAPIMixin, APITestCase):
    """
    活动模块接口测试：
    - 活动增删改查与权限
    - 报名/取消报名，重复报名 409
    - 比赛成绩登记与排序
    """

    @classmethod
    def setUpTestData(cls):
        cls.admin = cls.make_user("admin", role=User.Role.ADMIN)
        cls.alice = cls.make_user("alice")
        cls.bob = cls.make_user("bob")

    def setUp(self):
        self.admin_client = self.auth_client("admin")
        self.alice_client = self.auth_client("alice")

    def _create_event(self, **overrides) -> dict:
        payload = {
            "title": "Weekly Contest",
            "event_type": "contest",
            "date": "2026-11-01T18:00:00Z",
            "duration": 120,
            "location": "Room 101",
        }
        payload.update(overrides)
        resp = self.admin_client.post("/api/events", payload, format="json")
        self.assertEqual(resp.status_code, 201, resp.content)
        return resp.data["data"]["event"]

    def test_create_requires_admin(self):
        resp = self.alice_client.post(
            "/api/events",
            {"title": "x", "event_type": "meetup", "date": "2026-11-01T18:00:00Z", "duration": 60},
            format="json",
        )
        self.assertEqual(resp.status_code, 403)
        resp = APIClient().post("/api/events", {}, format="json")
        self.assertEqual(resp.status_code, 401)

    def test_create_validates_fields(self):
        bad_duration = self.admin_client.post(
            "/api/events",
            {"title": "x", "event_type": "meetup", "date": "2026-11-01T18:00:00Z", "duration": 0},
            format="json",
        )
        self.assertEqual(bad_duration.status_code, 400)
        bad_type = self.admin_client.post(
            "/api/events",
            {"title": "x", "eventType": "party", "date": "2026-11-01T18:00:00Z", "duration": 30},
            format="json",
        )
        self.assertEqual(bad_type.status_code, 400)
        bad_date = self.admin_client.post(
            "/api/events",
            {"title": "x", "event_type": "meetup", "date": "tomorrow", "duration": 30},
            format="json",
        )
        self.assertEqual(bad_date.status_code, 400)

    def test_list_sorted_by_date_with_registration_count(self):
        late = self._create_event(title="Late", date="2026-12-01T10:00:00Z")
        early = self._create_event(title="Early", date="2026-10-01T10:00:00Z")
        self.alice_client.post(f"/api/events/{late['id']}/register")
        resp = self.client.get("/api/events")
        self.assertEqual(resp.status_code, 200)
        items = resp.data["data"]["items"]
        self.assertEqual([e["id"] for e in items], [early["id"], late["id"]])
        self.assertEqual(items[1]["registration_count"], 1)
        self.assertEqual(items[0]["registration_count"], 0)

    def test_detail_malformed_and_missing(self):
        self.assertEqual(self.client.get("/api/events/abc").status_code, 400)
        self.assertEqual(self.client.get("/api/events/4040").status_code, 404)
        self.assertEqual(self.client.get("/api/events/%C2%B2").status_code, 400)
        self.assertEqual(self.client.get("/api/events/" + "9" * 30).status_code, 400)

    def test_patch_event(self):
        event = self._create_event()
        resp = self.admin_client.patch(f"/api/events/{event['id']}", {"location": "Hall B"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["event"]["location"], "Hall B")
        self.assertEqual(resp.data["data"]["event"]["title"], "Weekly Contest")

    def test_register_twice_is_conflict_without_duplicate_row(self):
        event = self._create_event()
        first = self.alice_client.post(f"/api/events/{event['id']}/register")
        self.assertEqual(first.status_code, 201)
        second = self.alice_client.post(f"/api/events/{event['id']}/register")
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.data["code"], AlreadyRegisteredError.default_code)
        self.assertEqual(EventRegistration.objects.filter(event_id=event["id"], user=self.alice).count(), 1)

    def test_register_requires_login_and_existing_event(self):
        event = self._create_event()
        self.assertEqual(APIClient().post(f"/api/events/{event['id']}/register").status_code, 401)
        self.assertEqual(self.alice_client.post("/api/events/999/register").status_code, 404)

    def test_cancel_registration(self):
        event = self._create_event()
        self.assertEqual(self.alice_client.delete(f"/api/events/{event['id']}/register").status_code, 404)
        self.alice_client.post(f"/api/events/{event['id']}/register")
        self.assertEqual(self.alice_client.delete(f"/api/events/{event['id']}/register").status_code, 200)
        self.assertFalse(EventRegistration.objects.filter(event_id=event["id"]).exists())

    def test_registrations_listing_is_admin_only(self):
        event = self._create_event()
        self.alice_client.post(f"/api/events/{event['id']}/register")
        self.auth_client("bob").post(f"/api/events/{event['id']}/register")
        self.assertEqual(self.alice_client.get(f"/api/events/{event['id']}/registrations").status_code, 403)
        resp = self.admin_client.get(f"/api/events/{event['id']}/registrations")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([r["user_id"] for r in resp.data["data"]["items"]], [self.alice.id, self.bob.id])

    def test_results_sorted_by_score_desc(self):
        event = self._create_event()
        for user, score in ((self.alice, 50), (self.bob, 90)):
            resp = self.admin_client.post(
                f"/api/events/{event['id']}/results",
                {"userId": user.id, "score": score},
                format="json",
            )
            self.assertEqual(resp.status_code, 201)
        resp = self.client.get(f"/api/events/{event['id']}/results")
        self.assertEqual([r["score"] for r in resp.data["data"]["items"]], [90, 50])

    def test_results_only_for_contest_events(self):
        event = self._create_event(event_type="workshop")
        resp = self.admin_client.post(
            f"/api/events/{event['id']}/results",
            {"user_id": self.alice.id, "score": 10},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], NotContestEventError.default_code)

    def test_result_for_unknown_user_is_404(self):
        event = self._create_event()
        resp = self.admin_client.post(
            f"/api/events/{event['id']}/results",
            {"user_id": 9999, "score": 10},
            format="json",
        )
        self.assertEqual(resp.status_code, 404)

    def test_result_score_must_be_integer(self):
        event = self._create_event()
        resp = self.admin_client.post(
            f"/api/events/{event['id']}/results",
            {"user_id": self.alice.id, "score": "lots"},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)

    def test_result_score_out_of_range_is_400(self):
        event = self._create_event()
        for score in (10**30, -(10**30), 2**31):
            resp = self.admin_client.post(
                f"/api/events/{event['id']}/results",
                {"user_id": self.alice.id, "score": score},
                format="json",
            )
            self.assertEqual(resp.status_code, 400, score)
        self.assertFalse(ContestResult.objects.filter(event_id=event["id"]).exists())

    def test_update_and_delete_result(self):
        event = self._create_event()
        created = self.admin_client.post(
            f"/api/events/{event['id']}/results",
            {"user_id": self.alice.id, "score": 10, "position": 3},
            format="json",
        ).data["data"]["result"]
        resp = self.admin_client.patch(f"/api/events/results/{created['id']}", {"score": 75}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["data"]["result"]["score"], 75)
        self.assertEqual(resp.data["data"]["result"]["position"], 3)
        self.assertEqual(self.alice_client.delete(f"/api/events/results/{created['id']}").status_code, 403)
        self.assertEqual(self.admin_client.delete(f"/api/events/results/{created['id']}").status_code, 200)
        self.assertFalse(ContestResult.objects.filter(pk=created["id"]).exists())

    def test_delete_event_cascades(self):
        event = self._create_event()
        self.alice_client.post(f"/api/events/{event['id']}/register")
        self.admin_client.post(
            f"/api/events/{event['id']}/results",
            {"user_id": self.alice.id, "score": 10},
            format="json",
        )
        resp = self.admin_client.delete(f"/api/events/{event['id']}")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(Event.objects.filter(pk=event["id"]).exists())
        self.assertFalse(EventRegistration.objects.filter(event_id=event["id"]).exists())
        self.assertFalse(ContestResult.objects.filter(event_id=event["id"]).exists())
