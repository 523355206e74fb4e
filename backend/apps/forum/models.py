"""
论坛模块模型：

- ForumPost：帖子，带标签与浏览量
- ForumReply：回复，带点赞数与“最佳答案”标记（每个帖子至多一个）
- ReplyUpvote：点赞记录，(回复, 用户) 唯一，保证一人只能赞一次
"""

from __future__ import annotations

from django.conf import settings
from django.db import models


class ForumPost(models.Model):
    title = models.CharField("标题", max_length=200)
    content = models.TextField("内容")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="forum_posts",
        verbose_name="作者",
    )
    views = models.PositiveIntegerField("浏览量", default=0)
    tags = models.JSONField("标签", default=list, blank=True)
    created_at = models.DateTimeField("创建时间", auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField("更新时间", auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name = "帖子"
        verbose_name_plural = "帖子"

    def __str__(self) -> str:
        return self.title


class ForumReply(models.Model):
    post = models.ForeignKey(ForumPost, on_delete=models.CASCADE, related_name="replies", verbose_name="帖子")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="forum_replies",
        verbose_name="作者",
    )
    content = models.TextField("内容")
    upvotes = models.PositiveIntegerField("点赞数", default=0)
    is_best_answer = models.BooleanField("最佳答案", default=False)
    created_at = models.DateTimeField("创建时间", auto_now_add=True)
    updated_at = models.DateTimeField("更新时间", auto_now=True)

    class Meta:
        ordering = ["created_at", "id"]
        verbose_name = "回复"
        verbose_name_plural = "回复"

    def __str__(self) -> str:
        return f"reply#{self.pk} on post#{self.post_id}"


class ReplyUpvote(models.Model):
    reply = models.ForeignKey(ForumReply, on_delete=models.CASCADE, related_name="upvote_records", verbose_name="回复")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reply_upvotes",
        verbose_name="用户",
    )
    created_at = models.DateTimeField("点赞时间", auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        verbose_name = "回复点赞"
        verbose_name_plural = "回复点赞"
        constraints = [
            models.UniqueConstraint(fields=["reply", "user"], name="uniq_reply_upvote"),
        ]
