from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Staff profiles, audit trail, error handling and health checks."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.core'
    verbose_name = 'Newsroom Core'

    def ready(self):
        from apps.core.observability import register_default_checks

        register_default_checks()
