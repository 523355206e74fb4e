"""
后台用户管理：
- 在 Django 自带 UserAdmin 基础上补充展示名、角色、水平等俱乐部字段
"""

from __future__ import annotations

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import User


@admin.register(User)
class ClubUserAdmin(DjangoUserAdmin):
    list_display = ("id", "username", "display_name", "email", "role", "level", "is_active", "date_joined")
    list_filter = ("role", "level", "is_active")
    search_fields = ("username", "display_name", "email")
    ordering = ("display_name",)
    fieldsets = DjangoUserAdmin.fieldsets + (
        ("俱乐部资料", {"fields": ("display_name", "avatar", "bio", "role", "level")}),
    )
    add_fieldsets = DjangoUserAdmin.add_fieldsets + (
        ("俱乐部资料", {"fields": ("email", "display_name", "role", "level")}),
    )
