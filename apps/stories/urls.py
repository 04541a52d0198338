"""
Story API URLs.
"""

from django.urls import include, path

from config.routers import SafeDefaultRouter

from .views import StoryViewSet

app_name = 'stories'

router = SafeDefaultRouter()
router.register(r'', StoryViewSet, basename='story')

urlpatterns = [
    path('', include(router.urls)),
]
