# apps/common/schema_utils.py
from __future__ import annotations

import copy

from rest_framework import serializers
from drf_spectacular.utils import inline_serializer


_CACHE: dict[str, serializers.Serializer] = {}


def _cached(name: str, builder):
    """
    简单缓存，避免重复生成同名 inline serializer 导致冲突
    - 每次返回深拷贝：同一实例被绑定为 child 后 source 已设置，不能再次复用
    """
    if name not in _CACHE:
        _CACHE[name] = builder()
    return copy.deepcopy(_CACHE[name])


def api_response_schema(
    name: str,
    data_fields: dict,
    *,
    extra_serializer: serializers.Field | None = None,
) -> serializers.Serializer:
    """
    构造统一响应 Schema：code/message/data/extra
    - name 用于生成唯一的响应/数据命名
    - data_fields 为 data 内部的字段定义
    """
    normalized_fields = {}
    for key, value in data_fields.items():
        if isinstance(value, type) and issubclass(value, serializers.Serializer):
            normalized_fields[key] = value()
        else:
            normalized_fields[key] = value
    data_serializer = inline_serializer(name=f"{name}Data", fields=normalized_fields)
    return inline_serializer(
        name=f"{name}Response",
        fields={
            "code": serializers.IntegerField(help_text="业务状态码，0 表示成功"),
            "message": serializers.CharField(help_text="提示信息"),
            "data": data_serializer,
            "extra": extra_serializer
            if extra_serializer
            else serializers.DictField(required=False, allow_null=True, help_text="附加信息"),
        },
    )


def list_response(name: str, item_serializer, extra_fields: dict | None = None):
    """列表响应：data.items 为数组，可选附加字段"""
    items_field = (
        item_serializer(many=True)
        if isinstance(item_serializer, type) and issubclass(item_serializer, serializers.Serializer)
        else serializers.ListField(child=item_serializer)
    )
    fields = {"items": items_field}
    if extra_fields:
        fields.update(extra_fields)
    return api_response_schema(name, fields)


# 常用数据结构
def user_serializer():
    return _cached(
        "ClubUser",
        lambda: inline_serializer(
            name="ClubUser",
            fields={
                "id": serializers.IntegerField(),
                "username": serializers.CharField(),
                "display_name": serializers.CharField(),
                "email": serializers.EmailField(),
                "avatar": serializers.CharField(allow_blank=True),
                "bio": serializers.CharField(allow_blank=True),
                "role": serializers.ChoiceField(choices=["member", "admin", "guest"]),
                "level": serializers.ChoiceField(choices=["beginner", "intermediate", "advanced"]),
                "date_joined": serializers.DateTimeField(),
            },
        ),
    )


def event_serializer():
    return _cached(
        "ClubEvent",
        lambda: inline_serializer(
            name="ClubEvent",
            fields={
                "id": serializers.IntegerField(),
                "title": serializers.CharField(),
                "description": serializers.CharField(allow_blank=True),
                "event_type": serializers.ChoiceField(choices=["contest", "workshop", "meetup"]),
                "date": serializers.DateTimeField(),
                "duration": serializers.IntegerField(help_text="时长（分钟）"),
                "location": serializers.CharField(allow_blank=True),
                "created_by": serializers.IntegerField(allow_null=True),
                "created_at": serializers.DateTimeField(),
                "registration_count": serializers.IntegerField(required=False),
            },
        ),
    )


def registration_serializer():
    return _cached(
        "EventRegistration",
        lambda: inline_serializer(
            name="EventRegistration",
            fields={
                "id": serializers.IntegerField(),
                "event_id": serializers.IntegerField(),
                "user_id": serializers.IntegerField(),
                "registered_at": serializers.DateTimeField(),
            },
        ),
    )


def contest_result_serializer():
    return _cached(
        "ContestResult",
        lambda: inline_serializer(
            name="ContestResult",
            fields={
                "id": serializers.IntegerField(),
                "event_id": serializers.IntegerField(),
                "user_id": serializers.IntegerField(),
                "score": serializers.IntegerField(),
                "position": serializers.IntegerField(allow_null=True),
                "created_at": serializers.DateTimeField(),
            },
        ),
    )


def leaderboard_entry_serializer():
    return _cached(
        "LeaderboardEntry",
        lambda: inline_serializer(
            name="LeaderboardEntry",
            fields={
                "rank": serializers.IntegerField(),
                "user_id": serializers.IntegerField(),
                "username": serializers.CharField(),
                "display_name": serializers.CharField(),
                "avatar": serializers.CharField(allow_blank=True),
                "level": serializers.CharField(),
                "score": serializers.IntegerField(),
                "contest_count": serializers.IntegerField(),
                "top_problem": serializers.CharField(allow_null=True),
            },
        ),
    )


def forum_reply_serializer():
    return _cached(
        "ForumReply",
        lambda: inline_serializer(
            name="ForumReply",
            fields={
                "id": serializers.IntegerField(),
                "post_id": serializers.IntegerField(),
                "user_id": serializers.IntegerField(),
                "content": serializers.CharField(),
                "upvotes": serializers.IntegerField(),
                "is_best_answer": serializers.BooleanField(),
                "created_at": serializers.DateTimeField(),
                "updated_at": serializers.DateTimeField(),
            },
        ),
    )


def forum_post_serializer():
    return _cached(
        "ForumPost",
        lambda: inline_serializer(
            name="ForumPost",
            fields={
                "id": serializers.IntegerField(),
                "title": serializers.CharField(),
                "content": serializers.CharField(),
                "user_id": serializers.IntegerField(),
                "views": serializers.IntegerField(),
                "tags": serializers.ListField(child=serializers.CharField()),
                "created_at": serializers.DateTimeField(),
                "updated_at": serializers.DateTimeField(),
                "reply_count": serializers.IntegerField(required=False),
                "replies": serializers.ListField(child=forum_reply_serializer(), required=False),
            },
        ),
    )


def resource_serializer():
    return _cached(
        "ClubResource",
        lambda: inline_serializer(
            name="ClubResource",
            fields={
                "id": serializers.IntegerField(),
                "title": serializers.CharField(),
                "description": serializers.CharField(allow_blank=True),
                "content": serializers.CharField(allow_blank=True),
                "resource_type": serializers.ChoiceField(choices=["guide", "video", "practice", "career"]),
                "link": serializers.CharField(allow_blank=True),
                "user_id": serializers.IntegerField(allow_null=True),
                "created_at": serializers.DateTimeField(),
                "updated_at": serializers.DateTimeField(),
            },
        ),
    )
