from __future__ import annotations

from django.urls import path

from .views import LeaderboardEntryView, LeaderboardView

app_name = "leaderboard"

urlpatterns = [
    path("leaderboard", LeaderboardView.as_view(), name="leaderboard"),
    path("leaderboard/<str:user_id>", LeaderboardEntryView.as_view(), name="leaderboard-entry"),
]
