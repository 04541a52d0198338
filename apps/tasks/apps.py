from django.apps import AppConfig


class TasksConfig(AppConfig):
    """Editorial tasks and their assignment policy."""

    name = 'apps.tasks'
    verbose_name = 'Editorial tasks'
