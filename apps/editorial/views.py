"""
Editorial dashboard API views.

Sub-editors and above only.

GET /api/editorial/pipeline/              - Per-stage counts and SLA breaches
GET /api/editorial/workload/?role=        - Reviewer (JOURNALIST) or approver (SUB_EDITOR) load
GET /api/editorial/health/                - Throughput and bottleneck
GET /api/editorial/queue/<stage>/         - Stories waiting in a stage
GET /api/editorial/time-sensitive/        - Follow-ups and scheduled publishes due soon
"""

from django.utils import timezone
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.exceptions import ValidationFailedError
from apps.core.permissions import IsSubEditorOrAbove
from apps.core.throttling import MetricsThrottle

from .monitor import SLAMonitor


class EditorialView(APIView):
    permission_classes = [IsSubEditorOrAbove]
    throttle_classes = [MetricsThrottle]

    def get_monitor(self):
        return SLAMonitor()


class PipelineMetricsView(EditorialView):

    def get(self, request):
        data = self.get_monitor().pipeline_metrics()
        data['timestamp'] = timezone.now().isoformat()
        return Response(data)


class ReviewerWorkloadView(EditorialView):

    def get(self, request):
        role = request.query_params.get('role', 'JOURNALIST').upper()
        return Response({
            'role': role,
            'workload': self.get_monitor().reviewer_workload(role),
        })


class WorkflowHealthView(EditorialView):

    def get(self, request):
        return Response(self.get_monitor().workflow_health())


class QueueDetailsView(EditorialView):

    def get(self, request, stage):
        stage = stage.upper()
        return Response({
            'stage': stage,
            'stories': self.get_monitor().queue_details(stage),
        })


class TimeSensitiveStoriesView(EditorialView):

    def get(self, request):
        window = request.query_params.get('window_days')
        if window is not None:
            try:
                window = int(window)
            except ValueError:
                raise ValidationFailedError("window_days must be a whole number", field='window_days')
        return Response({
            'stories': self.get_monitor().time_sensitive_stories(window),
        })
