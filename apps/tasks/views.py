"""
Task inbox API views.

GET  /api/tasks/                     - Role-filtered inbox
GET  /api/tasks/{id}/                - Task detail
POST /api/tasks/{id}/start/          - Assignee starts work
POST /api/tasks/{id}/complete/       - Assignee completes (runs the coupled transition)
POST /api/tasks/{id}/reassign/       - Hand the task to another candidate
POST /api/tasks/{id}/claim/          - Take an unassigned task for yourself
GET  /api/tasks/{id}/candidates/     - Eligible assignees
GET  /api/tasks/{id}/comments/       - Task discussion
POST /api/tasks/{id}/comments/       - Add a comment

Inbox filters: status (comma separated), type, priority, mine=true,
content_kind, content_id. Ordered by priority (urgent first), due date,
then newest.
"""

from django.db.models import Case, F, IntegerField, Q, Value, When
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.permissions import IsStaffMember, get_user_role, role_at_least
from apps.core.serializers import UserSummarySerializer
from apps.core.throttling import WorkflowActionThrottle

from .models import Task
from .orchestrator import (
    add_task_comment,
    claim_task,
    complete_task,
    get_task,
    reassign_task,
    start_task,
    task_candidates,
    task_comments,
)
from .serializers import (
    TaskCommentSerializer,
    TaskCompleteSerializer,
    TaskReassignSerializer,
    TaskSerializer,
)

PRIORITY_RANK = Case(
    When(priority='URGENT', then=Value(4)),
    When(priority='HIGH', then=Value(3)),
    When(priority='MEDIUM', then=Value(2)),
    When(priority='LOW', then=Value(1)),
    default=Value(0),
    output_field=IntegerField(),
)

# Unassigned tasks journalists may pick up
JOURNALIST_POOL_TYPES = ('STORY_REVIEW', 'STORY_REVISION_TO_JOURNALIST')


class TaskViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Task inbox.

    Interns see their own tasks, journalists additionally see unassigned
    review tasks (which they can claim), sub-editors and above see
    everything.
    """

    permission_classes = [IsStaffMember]
    serializer_class = TaskSerializer
    queryset = Task.objects.select_related('assigned_to', 'created_by')

    def get_queryset(self):
        user = self.request.user
        role = get_user_role(user)
        queryset = super().get_queryset()

        if not role_at_least(role, 'SUB_EDITOR'):
            visible = Q(assigned_to=user)
            if role == 'JOURNALIST':
                visible |= Q(assigned_to__isnull=True, task_type__in=JOURNALIST_POOL_TYPES)
            queryset = queryset.filter(visible)

        params = self.request.query_params

        status_filter = params.get('status')
        if status_filter:
            queryset = queryset.filter(status__in=status_filter.split(','))

        task_type = params.get('type')
        if task_type:
            queryset = queryset.filter(task_type=task_type)

        priority = params.get('priority')
        if priority:
            queryset = queryset.filter(priority=priority)

        mine = params.get('mine')
        if mine and mine.lower() in ('true', '1', 'yes'):
            queryset = queryset.filter(assigned_to=user)

        content_kind = params.get('content_kind')
        if content_kind:
            queryset = queryset.filter(content_kind=content_kind)

        content_id = params.get('content_id')
        if content_id:
            queryset = queryset.filter(content_id=content_id)

        return queryset.annotate(priority_rank=PRIORITY_RANK).order_by(
            '-priority_rank',
            F('due_date').asc(nulls_last=True),
            '-created_at',
        )

    @action(detail=True, methods=['post'], throttle_classes=[WorkflowActionThrottle])
    def start(self, request, pk=None):
        task = start_task(pk, request.user)
        return Response(TaskSerializer(task).data)

    @action(detail=True, methods=['post'], throttle_classes=[WorkflowActionThrottle])
    def complete(self, request, pk=None):
        serializer = TaskCompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        task = complete_task(pk, request.user, metadata=serializer.to_metadata())
        return Response(TaskSerializer(task).data)

    @action(detail=True, methods=['post'], throttle_classes=[WorkflowActionThrottle])
    def reassign(self, request, pk=None):
        serializer = TaskReassignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        task = reassign_task(
            pk,
            serializer.validated_data['assignee_id'],
            request.user,
            notes=serializer.validated_data['notes'],
        )
        return Response(TaskSerializer(task).data)

    @action(detail=True, methods=['post'], throttle_classes=[WorkflowActionThrottle])
    def claim(self, request, pk=None):
        task = claim_task(pk, request.user)
        return Response(TaskSerializer(task).data)

    @action(detail=True, methods=['get'])
    def candidates(self, request, pk=None):
        task = get_task(pk)
        users = task_candidates(task)
        return Response([
            {**UserSummarySerializer(user).data, 'role': user.staff_profile.role}
            for user in users
        ])

    @action(detail=True, methods=['get', 'post'])
    def comments(self, request, pk=None):
        if request.method == 'GET':
            return Response(task_comments(get_task(pk), request.user))

        serializer = TaskCommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = add_task_comment(
            pk,
            request.user,
            serializer.validated_data['content'],
            comment_type=serializer.validated_data['comment_type'],
        )
        return Response(comment, status=status.HTTP_201_CREATED)
