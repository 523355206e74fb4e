from __future__ import annotations

from django.contrib import admin

from .models import ForumPost, ForumReply, ReplyUpvote


class ForumReplyInline(admin.TabularInline):
    model = ForumReply
    extra = 0
    fields = ("user", "content", "upvotes", "is_best_answer", "created_at")
    readonly_fields = ("created_at",)


@admin.register(ForumPost)
class ForumPostAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "user", "views", "created_at")
    list_select_related = ("user",)
    search_fields = ("title", "content", "user__username")
    inlines = [ForumReplyInline]


@admin.register(ForumReply)
class ForumReplyAdmin(admin.ModelAdmin):
    list_display = ("id", "post", "user", "upvotes", "is_best_answer", "created_at")
    list_filter = ("is_best_answer",)
    list_select_related = ("post", "user")


@admin.register(ReplyUpvote)
class ReplyUpvoteAdmin(admin.ModelAdmin):
    list_display = ("id", "reply", "user", "created_at")
    list_select_related = ("reply", "user")
