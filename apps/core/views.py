"""
Health, readiness and authentication views.

Health check views are plain Django views so they answer without DRF
authentication or throttling.
"""

from django.http import JsonResponse
from django.views import View

from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from apps.core.observability import HealthStatus, health_checker
from apps.core.serializers import NewsroomTokenObtainPairSerializer, UserSerializer


def _status_code(status_value: str) -> int:
    return 200 if status_value == HealthStatus.HEALTHY.value else 503


class HealthCheckView(View):
    """
    GET /health/               - every registered check
    GET /health/<check_name>/  - one check
    """

    def get(self, request, check_name=None):
        if check_name:
            result = health_checker.check(check_name)
            return JsonResponse(result.to_dict(), status=_status_code(result.status.value))

        report = health_checker.check_all()
        return JsonResponse(report, status=_status_code(report["status"]))


class LivenessView(View):

    def get(self, request):
        return JsonResponse({"status": "alive"})


class ReadinessView(View):
    """Ready once the database answers; a task backlog does not block traffic."""

    def get(self, request):
        result = health_checker.check("database")
        if result.status is HealthStatus.HEALTHY:
            return JsonResponse({"status": "ready"})
        return JsonResponse({"status": "not_ready", "reason": result.message}, status=503)


# =============================================================================
# Authentication
# =============================================================================

class NewsroomTokenObtainPairView(TokenObtainPairView):
    """
    POST /api/auth/login/ {"username", "password"}
    Returns access and refresh tokens plus the user with their newsroom role.
    """
    serializer_class = NewsroomTokenObtainPairSerializer
    permission_classes = [AllowAny]


class NewsroomTokenRefreshView(TokenRefreshView):
    permission_classes = [AllowAny]


class CurrentUserView(APIView):
    """GET /api/auth/me/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)
