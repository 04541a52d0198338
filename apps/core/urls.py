"""
Health check, metrics and auth URL patterns.

``urlpatterns`` is mounted at the site root; ``auth_urlpatterns`` under
/api/auth/.
"""

from django.urls import path

from .metrics import metrics_view
from .views import (
    CurrentUserView,
    HealthCheckView,
    LivenessView,
    NewsroomTokenObtainPairView,
    NewsroomTokenRefreshView,
    ReadinessView,
)

app_name = 'core'

urlpatterns = [
    path('health/', HealthCheckView.as_view(), name='health'),
    path('health/<str:check_name>/', HealthCheckView.as_view(), name='health-check'),
    path('livez/', LivenessView.as_view(), name='liveness'),
    path('readyz/', ReadinessView.as_view(), name='readiness'),
    path('metrics/', metrics_view, name='metrics'),
]

auth_urlpatterns = [
    path('login/', NewsroomTokenObtainPairView.as_view(), name='login'),
    path('refresh/', NewsroomTokenRefreshView.as_view(), name='refresh'),
    path('me/', CurrentUserView.as_view(), name='me'),
]
