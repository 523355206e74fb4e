"""
活动模块模型：

- Event：俱乐部活动（比赛/工作坊/聚会），记录时间、时长、地点与创建人
- EventRegistration：成员报名记录，(活动, 用户) 唯一
- ContestResult：比赛类活动的成员成绩，排行榜据此聚合
"""

from __future__ import annotations

from django.conf import settings
from django.db import models


class Event(models.Model):
    class EventType(models.TextChoices):
        CONTEST = "contest", "比赛"
        WORKSHOP = "workshop", "工作坊"
        MEETUP = "meetup", "聚会"

    title = models.CharField("标题", max_length=200)
    description = models.TextField("描述", blank=True)
    event_type = models.CharField("类型", max_length=16, choices=EventType.choices, db_index=True)
    date = models.DateTimeField("开始时间", db_index=True)
    duration = models.PositiveIntegerField("时长（分钟）")
    location = models.CharField("地点", max_length=200, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_events",
        verbose_name="创建人",
    )
    created_at = models.DateTimeField("创建时间", auto_now_add=True)

    class Meta:
        ordering = ["date", "id"]
        verbose_name = "活动"
        verbose_name_plural = "活动"

    def __str__(self) -> str:
        return self.title

    @property
    def is_contest(self) -> bool:
        return self.event_type == self.EventType.CONTEST


class EventRegistration(models.Model):
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrations", verbose_name="活动")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="event_registrations",
        verbose_name="用户",
    )
    registered_at = models.DateTimeField("报名时间", auto_now_add=True)

    class Meta:
        ordering = ["registered_at", "id"]
        verbose_name = "活动报名"
        verbose_name_plural = "活动报名"
        constraints = [
            models.UniqueConstraint(fields=["event", "user"], name="uniq_event_registration"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}@{self.event_id}"


class ContestResult(models.Model):
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="results", verbose_name="活动")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="contest_results",
        verbose_name="用户",
    )
    score = models.IntegerField("得分")
    position = models.PositiveIntegerField("名次", null=True, blank=True)
    created_at = models.DateTimeField("登记时间", auto_now_add=True)

    class Meta:
        ordering = ["-score", "id"]
        verbose_name = "比赛成绩"
        verbose_name_plural = "比赛成绩"

    def __str__(self) -> str:
        return f"{self.user_id}:{self.score}@{self.event_id}"
