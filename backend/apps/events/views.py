from __future__ import annotations

from drf_spectacular.utils import extend_schema, inline_serializer
from rest_framework import serializers
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common import response
from apps.common.permissions import IsAdmin, IsAdminOrReadOnly, IsAuthenticated
from apps.common.schema_utils import (
    api_response_schema,
    contest_result_serializer,
    event_serializer,
    list_response,
    registration_serializer,
)
from apps.common.utils.helpers import to_payload
from apps.common.utils.validators import parse_id

from .schemas import (
    ContestResultCreateSchema,
    ContestResultUpdateSchema,
    EventCreateSchema,
    EventUpdateSchema,
)
from .services import (
    CancelRegistrationService,
    CreateEventService,
    DeleteEventService,
    DeleteResultService,
    EventQueryService,
    RecordResultService,
    RegisterForEventService,
    UpdateEventService,
    UpdateResultService,
    serialize_event,
    serialize_registration,
    serialize_result,
)

# 视图层：活动、报名、比赛成绩接口，仅做参数转换与调用服务层，不承载业务

_event_write_request = inline_serializer(
    name="EventWriteRequest",
    fields={
        "title": serializers.CharField(),
        "event_type": serializers.ChoiceField(choices=["contest", "workshop", "meetup"]),
        "date": serializers.DateTimeField(),
        "duration": serializers.IntegerField(min_value=1),
        "description": serializers.CharField(required=False, allow_blank=True),
        "location": serializers.CharField(required=False, allow_blank=True),
    },
)


class EventListView(APIView):
    """活动列表/创建接口：GET 公开访问，POST 仅管理员"""

    permission_classes = [IsAdminOrReadOnly]

    @extend_schema(
        tags=["events"],
        summary="活动列表",
        request=None,
        responses=list_response("EventList", event_serializer()),
    )
    def get(self, request: Request) -> Response:
        _ = request
        return response.success({"items": EventQueryService().list_events()})

    @extend_schema(
        tags=["events"],
        summary="创建活动",
        request=_event_write_request,
        responses=api_response_schema("EventCreate", {"event": event_serializer()}),
    )
    def post(self, request: Request) -> Response:
        schema = EventCreateSchema.from_dict(to_payload(request.data))
        event = CreateEventService().execute(request.user, schema)
        return response.created({"event": serialize_event(event, registration_count=0)}, message="活动已创建")


class EventDetailView(APIView):
    """活动详情/修改/删除：GET 公开，写操作仅管理员"""

    permission_classes = [IsAdminOrReadOnly]

    @extend_schema(
        tags=["events"],
        summary="活动详情",
        request=None,
        responses=api_response_schema("EventDetail", {"event": event_serializer()}),
    )
    def get(self, request: Request, event_id: str) -> Response:
        _ = request
        return response.success({"event": EventQueryService().get_event(parse_id(event_id, "活动 ID"))})

    @extend_schema(
        tags=["events"],
        summary="修改活动",
        request=_event_write_request,
        responses=api_response_schema("EventUpdate", {"event": event_serializer()}),
    )
    def patch(self, request: Request, event_id: str) -> Response:
        pk = parse_id(event_id, "活动 ID")
        schema = EventUpdateSchema.from_dict(to_payload(request.data))
        event = UpdateEventService().execute(pk, schema)
        return response.success({"event": serialize_event(event)}, message="活动已更新")

    @extend_schema(tags=["events"], summary="删除活动", request=None, responses=api_response_schema("EventDelete", {}))
    def delete(self, request: Request, event_id: str) -> Response:
        _ = request
        DeleteEventService().execute(parse_id(event_id, "活动 ID"))
        return response.success(None, message="活动已删除")


class EventRegisterView(APIView):
    """报名/取消报名：需登录"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["events"],
        summary="报名活动",
        request=None,
        responses=api_response_schema("EventRegister", {"registration": registration_serializer()}),
    )
    def post(self, request: Request, event_id: str) -> Response:
        registration = RegisterForEventService().execute(request.user, parse_id(event_id, "活动 ID"))
        return response.created({"registration": serialize_registration(registration)}, message="报名成功")

    @extend_schema(tags=["events"], summary="取消报名", request=None, responses=api_response_schema("EventUnregister", {}))
    def delete(self, request: Request, event_id: str) -> Response:
        CancelRegistrationService().execute(request.user, parse_id(event_id, "活动 ID"))
        return response.success(None, message="已取消报名")


class EventRegistrationListView(APIView):
    """报名名单：仅管理员，按报名时间升序"""

    permission_classes = [IsAdmin]

    @extend_schema(
        tags=["events"],
        summary="活动报名名单",
        request=None,
        responses=list_response("EventRegistrationList", registration_serializer()),
    )
    def get(self, request: Request, event_id: str) -> Response:
        _ = request
        registrations = EventQueryService().list_registrations(parse_id(event_id, "活动 ID"))
        return response.success({"items": [serialize_registration(r) for r in registrations]})


class EventResultListView(APIView):
    """活动成绩：GET 公开（按分数降序），POST 仅管理员登记"""

    permission_classes = [IsAdminOrReadOnly]

    @extend_schema(
        tags=["events"],
        summary="活动成绩列表",
        request=None,
        responses=list_response("EventResultList", contest_result_serializer()),
    )
    def get(self, request: Request, event_id: str) -> Response:
        _ = request
        results = EventQueryService().list_results(parse_id(event_id, "活动 ID"))
        return response.success({"items": [serialize_result(r) for r in results]})

    @extend_schema(
        tags=["events"],
        summary="登记比赛成绩",
        request=inline_serializer(
            name="ContestResultCreateRequest",
            fields={
                "user_id": serializers.IntegerField(),
                "score": serializers.IntegerField(),
                "position": serializers.IntegerField(required=False, allow_null=True, min_value=1),
            },
        ),
        responses=api_response_schema("ContestResultCreate", {"result": contest_result_serializer()}),
    )
    def post(self, request: Request, event_id: str) -> Response:
        pk = parse_id(event_id, "活动 ID")
        schema = ContestResultCreateSchema.from_dict(to_payload(request.data))
        result = RecordResultService().execute(request.user, pk, schema)
        return response.created({"result": serialize_result(result)}, message="成绩已登记")


class ContestResultDetailView(APIView):
    """修改/删除单条成绩：仅管理员"""

    permission_classes = [IsAdmin]

    @extend_schema(
        tags=["events"],
        summary="修改比赛成绩",
        request=inline_serializer(
            name="ContestResultUpdateRequest",
            fields={
                "score": serializers.IntegerField(required=False),
                "position": serializers.IntegerField(required=False, allow_null=True, min_value=1),
            },
        ),
        responses=api_response_schema("ContestResultUpdate", {"result": contest_result_serializer()}),
    )
    def patch(self, request: Request, result_id: str) -> Response:
        pk = parse_id(result_id, "成绩 ID")
        schema = ContestResultUpdateSchema.from_dict(to_payload(request.data))
        result = UpdateResultService().execute(pk, schema)
        return response.success({"result": serialize_result(result)}, message="成绩已更新")

    @extend_schema(tags=["events"], summary="删除比赛成绩", request=None, responses=api_response_schema("ContestResultDelete", {}))
    def delete(self, request: Request, result_id: str) -> Response:
        _ = request
        DeleteResultService().execute(parse_id(result_id, "成绩 ID"))
        return response.success(None, message="成绩已删除")
