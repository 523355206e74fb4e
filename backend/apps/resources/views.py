from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema, inline_serializer
from rest_framework import serializers
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common import response
from apps.common.permissions import IsAdminOrReadOnly
from apps.common.schema_utils import api_response_schema, list_response, resource_serializer
from apps.common.utils.helpers import to_payload
from apps.common.utils.validators import parse_id, validate_choice

from .models import Resource
from .schemas import ResourceCreateSchema, ResourceUpdateSchema
from .services import (
    CreateResourceService,
    DeleteResourceService,
    ResourceQueryService,
    UpdateResourceService,
    serialize_resource,
)

_resource_write_request = inline_serializer(
    name="ResourceWriteRequest",
    fields={
        "title": serializers.CharField(),
        "resource_type": serializers.ChoiceField(choices=Resource.ResourceType.values),
        "description": serializers.CharField(required=False, allow_blank=True),
        "content": serializers.CharField(required=False, allow_blank=True),
        "link": serializers.URLField(required=False, allow_blank=True),
    },
)


class ResourceListView(APIView):
    """资源列表（可按类型过滤）/创建（仅管理员）"""

    permission_classes = [IsAdminOrReadOnly]

    @extend_schema(
        tags=["resources"],
        summary="学习资源列表",
        request=None,
        parameters=[OpenApiParameter("type", str, description="按资源类型过滤", required=False)],
        responses=list_response("ResourceList", resource_serializer()),
    )
    def get(self, request: Request) -> Response:
        resource_type = request.query_params.get("type") or None
        if resource_type:
            validate_choice(resource_type, Resource.ResourceType.values, field_name="资源类型")
        resources = ResourceQueryService().list_resources(resource_type)
        return response.success({"items": [serialize_resource(r) for r in resources]})

    @extend_schema(
        tags=["resources"],
        summary="创建学习资源",
        request=_resource_write_request,
        responses=api_response_schema("ResourceCreate", {"resource": resource_serializer()}),
    )
    def post(self, request: Request) -> Response:
        schema = ResourceCreateSchema.from_dict(to_payload(request.data))
        resource = CreateResourceService().execute(request.user, schema)
        return response.created({"resource": serialize_resource(resource)}, message="资源已创建")


class ResourceDetailView(APIView):
    permission_classes = [IsAdminOrReadOnly]

    @extend_schema(
        tags=["resources"],
        summary="学习资源详情",
        request=None,
        responses=api_response_schema("ResourceDetail", {"resource": resource_serializer()}),
    )
    def get(self, request: Request, resource_id: str) -> Response:
        _ = request
        resource = ResourceQueryService().get_resource(parse_id(resource_id, "资源 ID"))
        return response.success({"resource": serialize_resource(resource)})

    @extend_schema(
        tags=["resources"],
        summary="修改学习资源",
        request=_resource_write_request,
        responses=api_response_schema("ResourceUpdate", {"resource": resource_serializer()}),
    )
    def patch(self, request: Request, resource_id: str) -> Response:
        pk = parse_id(resource_id, "资源 ID")
        schema = ResourceUpdateSchema.from_dict(to_payload(request.data))
        resource = UpdateResourceService().execute(pk, schema)
        return response.success({"resource": serialize_resource(resource)}, message="资源已更新")

    @extend_schema(tags=["resources"], summary="删除学习资源", request=None, responses=api_response_schema("ResourceDelete", {}))
    def delete(self, request: Request, resource_id: str) -> Response:
        _ = request
        DeleteResourceService().execute(parse_id(resource_id, "资源 ID"))
        return response.success(None, message="资源已删除")
