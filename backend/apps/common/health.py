from __future__ import annotations

from rest_framework.views import APIView
from rest_framework import serializers
from rest_framework.request import Request
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.common import response
from apps.common.permissions import AllowAny
from apps.common.schema_utils import api_response_schema
from apps.common.storage import get_storage


class HealthCheckView(APIView):
    """
    健康检查接口
    - 用于负载均衡/监控探活，返回统一成功格式
    - 不做昂贵检查，只回报当前存储后端
    """

    permission_classes = [AllowAny]
    authentication_classes: list = []

    @extend_schema(
        summary="健康检查",
        request=None,
        responses=api_response_schema(
            "HealthCheck",
            {"status": serializers.CharField(), "storage": serializers.CharField()},
        ),
    )
    def get(self, request: Request) -> Response:
        _ = request
        return response.success({"status": "ok", "storage": get_storage().backend_name})
