from __future__ import annotations

from django.urls import path

from .views import ResourceDetailView, ResourceListView

app_name = "resources"

urlpatterns = [
    path("resources", ResourceListView.as_view(), name="resource-list"),
    path("resources/<str:resource_id>", ResourceDetailView.as_view(), name="resource-detail"),
]
