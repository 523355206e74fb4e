"""
排行榜模块模型：

- ScoreAdjustment：管理员对成员总分的加减修正，不影响参赛场次
"""

from __future__ import annotations

from django.conf import settings
from django.db import models


class ScoreAdjustment(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="score_adjustments",
        verbose_name="用户",
    )
    delta = models.IntegerField("分数变化", help_text="正数加分，负数扣分")
    reason = models.CharField("原因", max_length=200, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name="操作人",
    )
    created_at = models.DateTimeField("创建时间", auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name = "分数修正"
        verbose_name_plural = "分数修正"

    def __str__(self) -> str:
        return f"{self.user_id}:{self.delta:+d}"
