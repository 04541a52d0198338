from django.apps import AppConfig


class TranslationsConfig(AppConfig):
    name = 'apps.translations'
    verbose_name = 'Translations'
