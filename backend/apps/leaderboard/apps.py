from django.apps import AppConfig


class LeaderboardConfig(AppConfig):
    """排行榜模块：成绩聚合与分数修正"""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.leaderboard"
    label = "leaderboard"
    verbose_name = "Leaderboard"
