"""
Router shared by the newsroom API apps.

Each app mounts its own router. DRF's DefaultRouter registers the
'drf_format_suffix' converter for every instance, which raises once a
second router is included, so format suffixes stay off.
"""

from rest_framework.routers import DefaultRouter


class SafeDefaultRouter(DefaultRouter):
    """DefaultRouter without format suffix patterns."""

    include_format_suffixes = False
