"""活动模块的数据访问层

数据库版与内存版共用查询方法（*Queries 混入类），只有聚合统计按存储分别实现
"""

from __future__ import annotations

from collections import Counter, defaultdict
from typing import Iterable

from django.db.models import Count, Sum

from apps.common.base.base_repo import BaseRepo
from apps.common.base.memory_repo import MemoryRepo

from .models import ContestResult, Event, EventRegistration


class EventQueries:
    model = Event
    ordering = ("date", "id")
    not_found_message = "活动不存在"


class RegistrationQueries:
    """
    报名查询：
    - 按报名时间升序列出某活动的报名
    - 统计活动报名人数
    """

    model = EventRegistration
    ordering = ("registered_at", "id")
    not_found_message = "未报名该活动"

    def for_event(self, event_id: int) -> list[EventRegistration]:
        return self.list(event_id=event_id)

    def find(self, event_id: int, user_id: int):
        return self.get_or_none(event_id=event_id, user_id=user_id)

    def counts_by_event(self, event_ids: Iterable[int]) -> dict[int, int]:
        counter = Counter(reg.event_id for reg in self.filter(event_id__in=list(event_ids)))
        return dict(counter)


class ContestResultQueries:
    """
    成绩查询：
    - 某活动成绩按分数降序
    - 按用户聚合总分与参赛场次（排行榜数据源）
    """

    model = ContestResult
    ordering = ("-score", "id")
    not_found_message = "成绩记录不存在"

    def for_event(self, event_id: int) -> list[ContestResult]:
        return self.list(event_id=event_id)


class EventRepo(EventQueries, BaseRepo[Event]):
    pass


class RegistrationRepo(RegistrationQueries, BaseRepo[EventRegistration]):
    def counts_by_event(self, event_ids: Iterable[int]) -> dict[int, int]:
        rows = (
            self.model._default_manager.filter(event_id__in=list(event_ids))
            .values("event_id")
            .annotate(total=Count("id"))
            .order_by()
        )
        return {row["event_id"]: row["total"] for row in rows}


class ContestResultRepo(ContestResultQueries, BaseRepo[ContestResult]):
    def aggregate_by_user(self) -> dict[int, tuple[int, int]]:
        """
        user_id → (总分, 参赛的不同活动数)
        """
        rows = (
            self.model._default_manager.values("user_id")
            .annotate(total=Sum("score"), contests=Count("event_id", distinct=True))
            .order_by()
        )
        return {row["user_id"]: (row["total"] or 0, row["contests"]) for row in rows}


class MemoryEventRepo(EventQueries, MemoryRepo[Event]):
    pass


class MemoryRegistrationRepo(RegistrationQueries, MemoryRepo[EventRegistration]):
    unique_together = (("event_id", "user_id"),)


class MemoryContestResultRepo(ContestResultQueries, MemoryRepo[ContestResult]):
    def aggregate_by_user(self) -> dict[int, tuple[int, int]]:
        totals: dict[int, int] = defaultdict(int)
        events: dict[int, set[int]] = defaultdict(set)
        for result in self._values():
            totals[result.user_id] += result.score
            events[result.user_id].add(result.event_id)
        return {user_id: (totals[user_id], len(events[user_id])) for user_id in totals}
