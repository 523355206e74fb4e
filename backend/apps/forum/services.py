"""论坛模块的业务服务层

职责：
- 帖子的发布、查看（浏览量 +1）、修改、删除（级联清理回复与点赞）
- 回复的发表、修改、删除、点赞（每人每条回复一次）
- 最佳答案采纳：仅帖子作者或管理员，同一事务内清除旧的最佳答案
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from django.db import IntegrityError

from apps.common.base.base_service import BaseQueryService, BaseService
from apps.common.exceptions import AlreadyUpvotedError, ReplyNotInPostError
from apps.common.infra.logger import get_logger, logger_extra
from apps.common.permissions import ensure_owner_or_admin

from .models import ForumPost, ForumReply
from .schemas import PostCreateSchema, PostUpdateSchema, ReplySchema

logger = get_logger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_reply(reply: ForumReply) -> dict[str, object]:
    return {
        "id": reply.id,
        "post_id": reply.post_id,
        "user_id": reply.user_id,
        "content": reply.content,
        "upvotes": reply.upvotes,
        "is_best_answer": reply.is_best_answer,
        "created_at": _iso(reply.created_at),
        "updated_at": _iso(reply.updated_at),
    }


def serialize_post(
        post: ForumPost,
        *,
        reply_count: Optional[int] = None,
        replies: Optional[list[ForumReply]] = None,
) -> dict[str, object]:
    data: dict[str, object] = {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "user_id": post.user_id,
        "views": post.views,
        "tags": list(post.tags or []),
        "created_at": _iso(post.created_at),
        "updated_at": _iso(post.updated_at),
    }
    if reply_count is not None:
        data["reply_count"] = reply_count
    if replies is not None:
        data["replies"] = [serialize_reply(r) for r in replies]
        data["reply_count"] = len(replies)
    return data


# ======================
# 帖子
# ======================

class CreatePostService(BaseService[ForumPost]):
    def perform(self, user, schema: PostCreateSchema) -> ForumPost:
        post = self.storage.posts.create(
            {"title": schema.title, "content": schema.content, "tags": schema.tags, "user_id": user.id}
        )
        logger.info("帖子已发布", extra=logger_extra({"post_id": post.id, "user_id": user.id}))
        return post


class ViewPostService(BaseService[tuple[ForumPost, list[ForumReply]]]):
    """
    查看帖子：浏览量原子 +1，返回帖子及按时间升序的回复
    """

    def perform(self, post_id: int) -> tuple[ForumPost, list[ForumReply]]:
        posts = self.storage.posts
        post = posts.increment(posts.get_by_id(post_id), "views")
        return post, self.storage.replies.for_post(post.id)


class UpdatePostService(BaseService[ForumPost]):
    """修改帖子：作者本人或管理员"""

    def perform(self, user, post_id: int, schema: PostUpdateSchema) -> ForumPost:
        posts = self.storage.posts
        post = posts.get_by_id(post_id)
        ensure_owner_or_admin(user, post.user_id, "仅作者或管理员可以修改该帖子")
        changes = schema.provided_fields()
        post = posts.update(post, changes)
        logger.info("帖子已修改", extra=logger_extra({"post_id": post.id, "fields": sorted(changes)}))
        return post


class DeletePostService(BaseService[None]):
    """
    删除帖子：作者本人或管理员
    - 同一事务内依次删除点赞、回复、帖子，任何一步失败整体回滚
    """

    def perform(self, user, post_id: int) -> None:
        post = self.storage.posts.get_by_id(post_id)
        ensure_owner_or_admin(user, post.user_id, "仅作者或管理员可以删除该帖子")
        reply_ids = [reply.id for reply in self.storage.replies.for_post(post.id)]
        upvotes = self.storage.upvotes.delete_where(reply_id__in=reply_ids) if reply_ids else 0
        replies = self.storage.replies.delete_where(post_id=post.id)
        self.storage.posts.delete(post)
        logger.info(
            "帖子已删除",
            extra=logger_extra({"post_id": post_id, "replies": replies, "upvotes": upvotes, "operator_id": user.id}),
        )


# ======================
# 回复
# ======================

class CreateReplyService(BaseService[ForumReply]):
    def perform(self, user, post_id: int, schema: ReplySchema) -> ForumReply:
        post = self.storage.posts.get_by_id(post_id)
        reply = self.storage.replies.create({"post_id": post.id, "user_id": user.id, "content": schema.content})
        logger.info("回复已发表", extra=logger_extra({"reply_id": reply.id, "post_id": post.id, "user_id": user.id}))
        return reply


class UpdateReplyService(BaseService[ForumReply]):
    def perform(self, user, reply_id: int, schema: ReplySchema) -> ForumReply:
        replies = self.storage.replies
        reply = replies.get_by_id(reply_id)
        ensure_owner_or_admin(user, reply.user_id, "仅作者或管理员可以修改该回复")
        reply = replies.update(reply, {"content": schema.content})
        logger.info("回复已修改", extra=logger_extra({"reply_id": reply.id}))
        return reply


class DeleteReplyService(BaseService[None]):
    def perform(self, user, reply_id: int) -> None:
        reply = self.storage.replies.get_by_id(reply_id)
        ensure_owner_or_admin(user, reply.user_id, "仅作者或管理员可以删除该回复")
        self.storage.upvotes.delete_where(reply_id=reply.id)
        self.storage.replies.delete(reply)
        logger.info("回复已删除", extra=logger_extra({"reply_id": reply_id, "post_id": reply.post_id}))


class UpvoteReplyService(BaseService[ForumReply]):
    """
    点赞回复：
    - 每个用户对同一回复只能点赞一次，重复点赞 409 且计数不变
    - 点赞数原子 +1
    """

    def perform(self, user, reply_id: int) -> ForumReply:
        replies = self.storage.replies
        upvotes = self.storage.upvotes
        reply = replies.get_by_id(reply_id)
        if upvotes.has_upvoted(reply.id, user.id):
            logger.warning("重复点赞被拒绝", extra=logger_extra({"reply_id": reply.id, "user_id": user.id}))
            raise AlreadyUpvotedError()
        try:
            with self.atomic():
                upvotes.create({"reply_id": reply.id, "user_id": user.id})
        except IntegrityError as exc:
            logger.warning("重复点赞被拒绝（唯一约束）", extra=logger_extra({"reply_id": reply.id, "user_id": user.id}))
            raise AlreadyUpvotedError() from exc
        reply = replies.increment(reply, "upvotes")
        logger.info("回复获得点赞", extra=logger_extra({"reply_id": reply.id, "upvotes": reply.upvotes}))
        return reply


class MarkBestAnswerService(BaseService[ForumReply]):
    """
    采纳最佳答案：
    - 仅帖子作者或管理员
    - 回复必须属于该帖子，否则 404
    - 同一事务内清除该帖子其他最佳答案；重复采纳同一回复直接返回
    """

    def perform(self, user, post_id: int, reply_id: int) -> ForumReply:
        post = self.storage.posts.get_by_id(post_id)
        ensure_owner_or_admin(user, post.user_id, "仅帖子作者或管理员可以采纳最佳答案")
        replies = self.storage.replies
        reply = replies.get_or_none(id=reply_id)
        if reply is None or reply.post_id != post.id:
            raise ReplyNotInPostError()
        cleared = replies.clear_best_answers(post.id, keep_id=reply.id)
        if not reply.is_best_answer:
            reply = replies.update(reply, {"is_best_answer": True})
        logger.info(
            "最佳答案已采纳",
            extra=logger_extra({"post_id": post.id, "reply_id": reply.id, "cleared": cleared, "operator_id": user.id}),
        )
        return reply


class ForumQueryService(BaseQueryService[None]):
    """论坛只读查询"""

    def list_posts(self) -> list[dict[str, object]]:
        with self.reading():
            posts = self.storage.posts.list()
            counts = self.storage.replies.counts_by_post(p.id for p in posts)
        return [serialize_post(p, reply_count=counts.get(p.id, 0)) for p in posts]

    def list_replies(self) -> list[ForumReply]:
        return self.storage.replies.list()
