"""论坛模块的数据访问层"""

from __future__ import annotations

from collections import Counter, defaultdict
from typing import Iterable

from django.db.models import Count

from apps.common.base.base_repo import BaseRepo
from apps.common.base.memory_repo import MemoryRepo

from .models import ForumPost, ForumReply, ReplyUpvote


class ForumPostQueries:
    model = ForumPost
    ordering = ("-created_at", "-id")
    not_found_message = "帖子不存在"

    def tag_counts_by_user(self) -> dict[int, Counter]:
        """user_id → 该用户所有帖子的标签计数"""
        counts: dict[int, Counter] = defaultdict(Counter)
        for post in self.list():
            counts[post.user_id].update(post.tags or [])
        return counts


class ForumReplyQueries:
    """
    回复查询：
    - 某帖子的回复按创建时间升序
    - 帖子回复数统计
    - 最佳答案的清理（同一帖子只保留一个）
    """

    model = ForumReply
    ordering = ("created_at", "id")
    not_found_message = "回复不存在"

    def for_post(self, post_id: int) -> list[ForumReply]:
        return self.list(post_id=post_id)

    def counts_by_post(self, post_ids: Iterable[int]) -> dict[int, int]:
        return dict(Counter(reply.post_id for reply in self.filter(post_id__in=list(post_ids))))

    def clear_best_answers(self, post_id: int, *, keep_id: int | None = None) -> int:
        cleared = 0
        for reply in self.list(post_id=post_id, is_best_answer=True):
            if reply.id == keep_id:
                continue
            self.update(reply, {"is_best_answer": False})
            cleared += 1
        return cleared


class ReplyUpvoteQueries:
    model = ReplyUpvote
    ordering = ("created_at", "id")
    not_found_message = "点赞记录不存在"

    def has_upvoted(self, reply_id: int, user_id: int) -> bool:
        return self.exists(reply_id=reply_id, user_id=user_id)


class ForumPostRepo(ForumPostQueries, BaseRepo[ForumPost]):
    pass


class ForumReplyRepo(ForumReplyQueries, BaseRepo[ForumReply]):
    def counts_by_post(self, post_ids: Iterable[int]) -> dict[int, int]:
        rows = (
            self.model._default_manager.filter(post_id__in=list(post_ids))
            .values("post_id")
            .annotate(total=Count("id"))
            .order_by()
        )
        return {row["post_id"]: row["total"] for row in rows}


class ReplyUpvoteRepo(ReplyUpvoteQueries, BaseRepo[ReplyUpvote]):
    pass


class MemoryForumPostRepo(ForumPostQueries, MemoryRepo[ForumPost]):
    pass


class MemoryForumReplyRepo(ForumReplyQueries, MemoryRepo[ForumReply]):
    pass


class MemoryReplyUpvoteRepo(ReplyUpvoteQueries, MemoryRepo[ReplyUpvote]):
    unique_together = (("reply_id", "user_id"),)
