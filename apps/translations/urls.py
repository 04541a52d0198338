"""
Translation assignment URLs.
"""

from django.urls import include, path

from config.routers import SafeDefaultRouter

from .views import TranslationAssignmentViewSet

app_name = 'translations'

router = SafeDefaultRouter()
router.register(r'', TranslationAssignmentViewSet, basename='translation')

urlpatterns = [
    path('', include(router.urls)),
]
