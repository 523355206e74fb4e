from __future__ import annotations

from django.conf import settings
from django.db import models


class Resource(models.Model):
    """
    学习资源：指南、视频、练习题单、职业发展资料
    - 由管理员维护，列表按创建时间倒序
    """

    class ResourceType(models.TextChoices):
        GUIDE = "guide", "指南"
        VIDEO = "video", "视频"
        PRACTICE = "practice", "练习"
        CAREER = "career", "职业"

    title = models.CharField("标题", max_length=200)
    description = models.TextField("简介", blank=True)
    content = models.TextField("正文", blank=True)
    resource_type = models.CharField("类型", max_length=16, choices=ResourceType.choices, db_index=True)
    link = models.URLField("链接", max_length=500, blank=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="resources",
        verbose_name="发布人",
    )
    created_at = models.DateTimeField("创建时间", auto_now_add=True)
    updated_at = models.DateTimeField("更新时间", auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name = "学习资源"
        verbose_name_plural = "学习资源"

    def __str__(self) -> str:
        return self.title
