"""
Prometheus Metrics for the newsroom workflow engine.

Metrics included:
- stage_transitions_total: Counter for story stage transitions by edge
- tasks_opened_total: Counter for tasks created by the orchestrator
- tasks_completed_total: Counter for completed tasks
- translation_reviews_total: Counter for translation review outcomes
- group_publishes_total: Counter for group publish attempts
- group_publish_size: Histogram of items released per group publish
- workflow_errors_total: Counter for workflow errors reported to callers

Cardinality Guidelines:
- All labels MUST be low-cardinality (small, bounded set of values)
- ALLOWED label values: edge names, task types, status enums, error codes
- FORBIDDEN label values: story IDs, slugs, user IDs, titles
- If per-story metrics are needed, use the audit trail instead

Setup:
    Add to urls.py:
        from apps.core.metrics import metrics_view
        urlpatterns = [
            path('metrics/', metrics_view, name='prometheus-metrics'),
        ]
"""

import logging

from django.http import HttpResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

logger = logging.getLogger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

stage_transitions_total = Counter(
    'newsroom_stage_transitions_total',
    'Total story stage transitions',
    ['edge']  # edge: submit_for_review/approve/publish/...
)

tasks_opened_total = Counter(
    'newsroom_tasks_opened_total',
    'Total tasks opened by the orchestrator',
    ['task_type', 'status']  # status: PENDING/PENDING_ASSIGNMENT
)

tasks_completed_total = Counter(
    'newsroom_tasks_completed_total',
    'Total tasks completed',
    ['task_type']
)

translation_reviews_total = Counter(
    'newsroom_translation_reviews_total',
    'Total translation review decisions',
    ['outcome']  # outcome: approve/reject
)

group_publishes_total = Counter(
    'newsroom_group_publishes_total',
    'Total group publish attempts',
    ['status']  # status: success/failed
)

group_publish_size = Histogram(
    'newsroom_group_publish_size',
    'Content items released per group publish',
    buckets=[1, 2, 3, 4, 6, 8]
)

workflow_errors_total = Counter(
    'newsroom_workflow_errors_total',
    'Workflow errors reported to callers',
    ['code']  # code: ErrorCode value
)


# ============================================================================
# Helper Functions
# ============================================================================

def increment_stage_transition(edge):
    """Increment stage transitions counter."""
    stage_transitions_total.labels(edge=edge).inc()


def increment_tasks_opened(task_type, status='PENDING'):
    """Increment tasks opened counter."""
    tasks_opened_total.labels(task_type=task_type, status=status).inc()


def increment_tasks_completed(task_type):
    """Increment tasks completed counter."""
    tasks_completed_total.labels(task_type=task_type).inc()


def increment_translation_review(outcome):
    """Increment translation review counter."""
    translation_reviews_total.labels(outcome=outcome).inc()


def record_group_publish(size, status='success'):
    """Record a group publish attempt and, on success, its size."""
    group_publishes_total.labels(status=status).inc()
    if status == 'success':
        group_publish_size.observe(size)


def increment_workflow_error(code):
    """Increment workflow error counter."""
    workflow_errors_total.labels(code=code).inc()


# ============================================================================
# Prometheus Endpoint
# ============================================================================

def metrics_view(request):
    """Expose all registered metrics in Prometheus text format."""
    return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)
