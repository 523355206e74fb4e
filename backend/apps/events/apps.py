from django.apps import AppConfig


class EventsConfig(AppConfig):
    """活动模块：活动、报名、比赛成绩"""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.events"
    label = "events"
    verbose_name = "Events"
