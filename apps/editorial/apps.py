from django.apps import AppConfig


class EditorialConfig(AppConfig):
    """Read-only dashboards; this app owns no models."""

    name = 'apps.editorial'
    verbose_name = 'Editorial dashboards'
