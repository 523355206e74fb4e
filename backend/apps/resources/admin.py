from __future__ import annotations

from django.contrib import admin

from .models import Resource


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "resource_type", "user", "created_at")
    list_filter = ("resource_type",)
    search_fields = ("title", "description")
