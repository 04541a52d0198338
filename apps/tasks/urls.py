"""
Task inbox URLs.
"""

from django.urls import include, path

from config.routers import SafeDefaultRouter

from .views import TaskViewSet

app_name = 'tasks'

router = SafeDefaultRouter()
router.register(r'', TaskViewSet, basename='task')

urlpatterns = [
    path('', include(router.urls)),
]
