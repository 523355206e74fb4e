from __future__ import annotations

from drf_spectacular.utils import extend_schema, inline_serializer
from rest_framework import serializers
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common import response
from apps.common.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly
from apps.common.schema_utils import (
    api_response_schema,
    forum_post_serializer,
    forum_reply_serializer,
    list_response,
)
from apps.common.utils.helpers import to_payload
from apps.common.utils.validators import parse_id

from .schemas import PostCreateSchema, PostUpdateSchema, ReplySchema
from .services import (
    CreatePostService,
    CreateReplyService,
    DeletePostService,
    DeleteReplyService,
    ForumQueryService,
    MarkBestAnswerService,
    UpdatePostService,
    UpdateReplyService,
    UpvoteReplyService,
    ViewPostService,
    serialize_post,
    serialize_reply,
)

# 视图层：论坛帖子与回复接口；作者/管理员校验在服务层完成

_post_write_request = inline_serializer(
    name="ForumPostWriteRequest",
    fields={
        "title": serializers.CharField(),
        "content": serializers.CharField(),
        "tags": serializers.ListField(child=serializers.CharField(), required=False),
    },
)

_reply_write_request = inline_serializer(
    name="ForumReplyWriteRequest",
    fields={"content": serializers.CharField()},
)


class PostListView(APIView):
    """帖子列表（带回复数）/发帖"""

    permission_classes = [IsAuthenticatedOrReadOnly]

    @extend_schema(
        tags=["forum"],
        summary="帖子列表",
        request=None,
        responses=list_response("ForumPostList", forum_post_serializer()),
    )
    def get(self, request: Request) -> Response:
        _ = request
        return response.success({"items": ForumQueryService().list_posts()})

    @extend_schema(
        tags=["forum"],
        summary="发布帖子",
        request=_post_write_request,
        responses=api_response_schema("ForumPostCreate", {"post": forum_post_serializer()}),
    )
    def post(self, request: Request) -> Response:
        schema = PostCreateSchema.from_dict(to_payload(request.data))
        post = CreatePostService().execute(request.user, schema)
        return response.created({"post": serialize_post(post, reply_count=0)}, message="帖子已发布")


class PostDetailView(APIView):
    """
    帖子详情：
    - GET 公开访问，浏览量 +1，附带全部回复
    - PATCH/DELETE 仅作者或管理员
    """

    permission_classes = [IsAuthenticatedOrReadOnly]

    @extend_schema(
        tags=["forum"],
        summary="帖子详情",
        request=None,
        responses=api_response_schema("ForumPostDetail", {"post": forum_post_serializer()}),
    )
    def get(self, request: Request, post_id: str) -> Response:
        _ = request
        post, replies = ViewPostService().execute(parse_id(post_id, "帖子 ID"))
        return response.success({"post": serialize_post(post, replies=replies)})

    @extend_schema(
        tags=["forum"],
        summary="修改帖子",
        request=_post_write_request,
        responses=api_response_schema("ForumPostUpdate", {"post": forum_post_serializer()}),
    )
    def patch(self, request: Request, post_id: str) -> Response:
        pk = parse_id(post_id, "帖子 ID")
        schema = PostUpdateSchema.from_dict(to_payload(request.data))
        post = UpdatePostService().execute(request.user, pk, schema)
        return response.success({"post": serialize_post(post)}, message="帖子已更新")

    @extend_schema(tags=["forum"], summary="删除帖子", request=None, responses=api_response_schema("ForumPostDelete", {}))
    def delete(self, request: Request, post_id: str) -> Response:
        DeletePostService().execute(request.user, parse_id(post_id, "帖子 ID"))
        return response.success(None, message="帖子已删除")


class PostReplyView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["forum"],
        summary="回复帖子",
        request=_reply_write_request,
        responses=api_response_schema("ForumReplyCreate", {"reply": forum_reply_serializer()}),
    )
    def post(self, request: Request, post_id: str) -> Response:
        pk = parse_id(post_id, "帖子 ID")
        schema = ReplySchema.from_dict(to_payload(request.data))
        reply = CreateReplyService().execute(request.user, pk, schema)
        return response.created({"reply": serialize_reply(reply)}, message="回复成功")


class ReplyListView(APIView):
    """全部回复（按时间升序）"""

    permission_classes = [IsAuthenticatedOrReadOnly]

    @extend_schema(
        tags=["forum"],
        summary="回复列表",
        request=None,
        responses=list_response("ForumReplyList", forum_reply_serializer()),
    )
    def get(self, request: Request) -> Response:
        _ = request
        return response.success({"items": [serialize_reply(r) for r in ForumQueryService().list_replies()]})


class ReplyDetailView(APIView):
    """修改/删除回复：仅作者或管理员"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["forum"],
        summary="修改回复",
        request=_reply_write_request,
        responses=api_response_schema("ForumReplyUpdate", {"reply": forum_reply_serializer()}),
    )
    def patch(self, request: Request, reply_id: str) -> Response:
        pk = parse_id(reply_id, "回复 ID")
        schema = ReplySchema.from_dict(to_payload(request.data))
        reply = UpdateReplyService().execute(request.user, pk, schema)
        return response.success({"reply": serialize_reply(reply)}, message="回复已更新")

    @extend_schema(tags=["forum"], summary="删除回复", request=None, responses=api_response_schema("ForumReplyDelete", {}))
    def delete(self, request: Request, reply_id: str) -> Response:
        DeleteReplyService().execute(request.user, parse_id(reply_id, "回复 ID"))
        return response.success(None, message="回复已删除")


class ReplyUpvoteView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["forum"],
        summary="点赞回复",
        request=None,
        responses=api_response_schema("ForumReplyUpvote", {"reply": forum_reply_serializer()}),
    )
    def post(self, request: Request, reply_id: str) -> Response:
        reply = UpvoteReplyService().execute(request.user, parse_id(reply_id, "回复 ID"))
        return response.success({"reply": serialize_reply(reply)}, message="点赞成功")


class BestAnswerView(APIView):
    """采纳最佳答案：帖子作者或管理员"""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["forum"],
        summary="采纳最佳答案",
        request=None,
        responses=api_response_schema("ForumBestAnswer", {"reply": forum_reply_serializer()}),
    )
    def post(self, request: Request, post_id: str, reply_id: str) -> Response:
        reply = MarkBestAnswerService().execute(
            request.user,
            parse_id(post_id, "帖子 ID"),
            parse_id(reply_id, "回复 ID"),
        )
        return response.success({"reply": serialize_reply(reply)}, message="已采纳为最佳答案")
