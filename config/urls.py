"""
Root URL configuration.

Workflow APIs live under /api/; health checks and /metrics/ at the site root.
"""

from django.contrib import admin
from django.urls import include, path

from apps.core.urls import auth_urlpatterns

admin.site.site_header = "Newsroom Administration"
admin.site.site_title = "Newsroom"
admin.site.index_title = "Editorial Workflow"

api_patterns = [
    path('auth/', include((auth_urlpatterns, 'auth'))),
    path('stories/', include('apps.stories.urls')),
    path('tasks/', include('apps.tasks.urls')),
    path('translations/', include('apps.translations.urls')),
    path('editorial/', include('apps.editorial.urls')),
    # Session login for the browsable API
    path('session/', include('rest_framework.urls')),
]

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include(api_patterns)),
    path('', include('apps.core.urls')),
]
