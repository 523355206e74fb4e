"""排行榜业务服务层

排行榜 = 按用户聚合比赛成绩（总分、参赛的不同活动数）+ 管理员分数修正

排序规则：总分降序 → 参赛场次降序 → 用户 ID 升序
名次：同分同名次，后续名次跳过（1, 1, 3）
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass
from typing import Optional

from apps.common.base.base_service import BaseQueryService, BaseService
from apps.common.exceptions import NotFoundError
from apps.common.infra.logger import get_logger, logger_extra

from .schemas import ScoreAdjustmentSchema

logger = get_logger(__name__)


@dataclass
class LeaderboardEntry:
    user_id: int
    username: str
    display_name: str
    avatar: str
    level: str
    score: int
    contest_count: int
    top_problem: Optional[str] = None
    rank: int = 0

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


def pick_top_tag(counter: Optional[Counter]) -> Optional[str]:
    """出现次数最多的标签，次数相同取字母序最小者"""
    if not counter:
        return None
    return min(counter.items(), key=lambda item: (-item[1], item[0]))[0]


def assign_ranks(entries: list[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """entries 需已排序；同分并列，后续名次按人数跳过"""
    previous_score = None
    for index, entry in enumerate(entries, start=1):
        if entry.score != previous_score:
            current_rank = index
            previous_score = entry.score
        entry.rank = current_rank
    return entries


class LeaderboardService(BaseQueryService[None]):
    """排行榜只读查询"""

    def build(self) -> list[LeaderboardEntry]:
        storage = self.storage
        with self.reading():
            results = storage.results.aggregate_by_user()
            adjustments = storage.adjustments.totals_by_user()
            user_ids = set(results) | set(adjustments)
            if not user_ids:
                return []
            users = {user.id: user for user in storage.users.filter(id__in=list(user_ids))}
            tags = storage.posts.tag_counts_by_user()

        entries = []
        for user_id in user_ids:
            user = users.get(user_id)
            if user is None:
                continue
            result_total, contest_count = results.get(user_id, (0, 0))
            entries.append(
                LeaderboardEntry(
                    user_id=user_id,
                    username=user.username,
                    display_name=user.display_name or user.username,
                    avatar=user.avatar,
                    level=user.level,
                    score=result_total + adjustments.get(user_id, 0),
                    contest_count=contest_count,
                    top_problem=pick_top_tag(tags.get(user_id)),
                )
            )
        entries.sort(key=lambda e: (-e.score, -e.contest_count, e.user_id))
        return assign_ranks(entries)

    def get_entry(self, user_id: int) -> LeaderboardEntry:
        for entry in self.build():
            if entry.user_id == user_id:
                return entry
        raise NotFoundError(message="该用户暂无排行榜记录")


class AdjustScoreService(BaseService[LeaderboardEntry]):
    """
    管理员修正成员分数：写入一条 ScoreAdjustment，返回修正后的排行榜条目
    """

    def perform(self, operator, user_id: int, schema: ScoreAdjustmentSchema) -> LeaderboardEntry:
        user = self.storage.users.get_by_id(user_id)
        adjustment = self.storage.adjustments.create(
            {
                "user_id": user.id,
                "delta": schema.delta,
                "reason": schema.reason or "",
                "created_by_id": operator.id,
            }
        )
        logger.info(
            "排行榜分数已修正",
            extra=logger_extra(
                {"adjustment_id": adjustment.id, "user_id": user.id, "delta": schema.delta, "operator_id": operator.id}
            ),
        )
        return LeaderboardService(self.storage).get_entry(user.id)
