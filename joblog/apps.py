from django.apps import AppConfig


class JoblogConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "joblog"
    verbose_name = "Dispatch job log"
