from __future__ import annotations

from django.contrib import admin

from .models import ContestResult, Event, EventRegistration


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "event_type", "date", "duration", "location", "created_by")
    list_filter = ("event_type",)
    search_fields = ("title", "location")
    ordering = ("date",)


@admin.register(EventRegistration)
class EventRegistrationAdmin(admin.ModelAdmin):
    list_display = ("id", "event", "user", "registered_at")
    list_select_related = ("event", "user")
    search_fields = ("event__title", "user__username")


@admin.register(ContestResult)
class ContestResultAdmin(admin.ModelAdmin):
    list_display = ("id", "event", "user", "score", "position", "created_at")
    list_select_related = ("event", "user")
    list_filter = ("event",)
    ordering = ("event", "-score")
