from __future__ import annotations

from django.urls import path

from .views import (
    BestAnswerView,
    PostDetailView,
    PostListView,
    PostReplyView,
    ReplyDetailView,
    ReplyListView,
    ReplyUpvoteView,
)

app_name = "forum"

urlpatterns = [
    path("forum", PostListView.as_view(), name="post-list"),
    # replies 路由需排在 forum/<id> 之前
    path("forum/replies", ReplyListView.as_view(), name="reply-list"),
    path("forum/replies/<str:reply_id>", ReplyDetailView.as_view(), name="reply-detail"),
    path("forum/replies/<str:reply_id>/upvote", ReplyUpvoteView.as_view(), name="reply-upvote"),
    path("forum/<str:post_id>", PostDetailView.as_view(), name="post-detail"),
    path("forum/<str:post_id>/replies", PostReplyView.as_view(), name="post-replies"),
    path("forum/<str:post_id>/best-answer/<str:reply_id>", BestAnswerView.as_view(), name="best-answer"),
]
