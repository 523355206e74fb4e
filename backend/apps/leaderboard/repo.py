"""排行榜模块的数据访问层"""

from __future__ import annotations

from collections import defaultdict

from django.db.models import Sum

from apps.common.base.base_repo import BaseRepo
from apps.common.base.memory_repo import MemoryRepo

from .models import ScoreAdjustment


class ScoreAdjustmentQueries:
    model = ScoreAdjustment
    ordering = ("-created_at", "-id")
    not_found_message = "分数修正记录不存在"

    def for_user(self, user_id: int) -> list[ScoreAdjustment]:
        return self.list(user_id=user_id)


class ScoreAdjustmentRepo(ScoreAdjustmentQueries, BaseRepo[ScoreAdjustment]):
    def totals_by_user(self) -> dict[int, int]:
        """user_id → 修正分数之和"""
        rows = self.model._default_manager.values("user_id").annotate(total=Sum("delta")).order_by()
        return {row["user_id"]: row["total"] or 0 for row in rows}


class MemoryScoreAdjustmentRepo(ScoreAdjustmentQueries, MemoryRepo[ScoreAdjustment]):
    def totals_by_user(self) -> dict[int, int]:
        totals: dict[int, int] = defaultdict(int)
        for adjustment in self._values():
            totals[adjustment.user_id] += adjustment.delta
        return dict(totals)
