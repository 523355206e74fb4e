from __future__ import annotations

from django.urls import path

from .views import (
    ContestResultDetailView,
    EventDetailView,
    EventListView,
    EventRegisterView,
    EventRegistrationListView,
    EventResultListView,
)

app_name = "events"

urlpatterns = [
    path("events", EventListView.as_view(), name="event-list"),
    # 单条成绩的修改/删除，需排在 events/<id> 之前
    path("events/results/<str:result_id>", ContestResultDetailView.as_view(), name="result-detail"),
    path("events/<str:event_id>", EventDetailView.as_view(), name="event-detail"),
    path("events/<str:event_id>/register", EventRegisterView.as_view(), name="event-register"),
    path("events/<str:event_id>/registrations", EventRegistrationListView.as_view(), name="event-registrations"),
    path("events/<str:event_id>/results", EventResultListView.as_view(), name="event-results"),
]
