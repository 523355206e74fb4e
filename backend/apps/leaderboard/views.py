from __future__ import annotations

from drf_spectacular.utils import extend_schema, inline_serializer
from rest_framework import serializers
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common import response
from apps.common.permissions import AllowAny, IsAdminOrReadOnly
from apps.common.schema_utils import api_response_schema, leaderboard_entry_serializer, list_response
from apps.common.utils.helpers import to_payload
from apps.common.utils.validators import parse_id

from .schemas import ScoreAdjustmentSchema
from .services import AdjustScoreService, LeaderboardService


class LeaderboardView(APIView):
    """完整排行榜：公开访问"""

    permission_classes = [AllowAny]

    @extend_schema(
        tags=["leaderboard"],
        summary="排行榜",
        request=None,
        responses=list_response("Leaderboard", leaderboard_entry_serializer()),
    )
    def get(self, request: Request) -> Response:
        _ = request
        entries = LeaderboardService().build()
        return response.success({"items": [e.to_dict() for e in entries]})


class LeaderboardEntryView(APIView):
    """单个成员的排行榜条目；管理员可 POST 修正分数"""

    permission_classes = [IsAdminOrReadOnly]

    @extend_schema(
        tags=["leaderboard"],
        summary="成员排行榜条目",
        request=None,
        responses=api_response_schema("LeaderboardEntryDetail", {"entry": leaderboard_entry_serializer()}),
    )
    def get(self, request: Request, user_id: str) -> Response:
        _ = request
        entry = LeaderboardService().get_entry(parse_id(user_id, "用户 ID"))
        return response.success({"entry": entry.to_dict()})

    @extend_schema(
        tags=["leaderboard"],
        summary="修正成员分数",
        request=inline_serializer(
            name="ScoreAdjustmentRequest",
            fields={
                "delta": serializers.IntegerField(help_text="非零整数，正数加分"),
                "reason": serializers.CharField(required=False, allow_blank=True),
            },
        ),
        responses=api_response_schema("LeaderboardAdjust", {"entry": leaderboard_entry_serializer()}),
    )
    def post(self, request: Request, user_id: str) -> Response:
        pk = parse_id(user_id, "用户 ID")
        schema = ScoreAdjustmentSchema.from_dict(to_payload(request.data))
        entry = AdjustScoreService().execute(request.user, pk, schema)
        return response.success({"entry": entry.to_dict()}, message="分数已修正")
