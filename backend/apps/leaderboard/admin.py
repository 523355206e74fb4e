from __future__ import annotations

from django.contrib import admin

from .models import ScoreAdjustment


@admin.register(ScoreAdjustment)
class ScoreAdjustmentAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "delta", "reason", "created_by", "created_at")
    list_select_related = ("user", "created_by")
    search_fields = ("user__username", "reason")
