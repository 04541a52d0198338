"""
Translation API views.

GET  /api/translations/              - Assignments (translators see their own)
GET  /api/translations/{id}/         - Assignment detail
POST /api/translations/{id}/start/   - Translator starts or resumes work
POST /api/translations/{id}/draft/   - Translator saves a draft
POST /api/translations/{id}/submit/  - Translator submits for review
POST /api/translations/{id}/review/  - Reviewer approves or rejects
"""

from django.contrib.auth import get_user_model
from django.db.models import Q
from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.exceptions import NotFoundError
from apps.core.permissions import IsStaffMember, get_user_role, role_at_least
from apps.core.throttling import WorkflowActionThrottle

from .models import TranslationAssignment
from .serializers import (
    TranslationAssignmentSerializer,
    TranslationDraftSerializer,
    TranslationReviewSerializer,
    TranslationSubmitSerializer,
)
from . import workflow

User = get_user_model()


class TranslationAssignmentViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Translation assignments and translator/reviewer actions."""

    permission_classes = [IsStaffMember]
    serializer_class = TranslationAssignmentSerializer
    queryset = TranslationAssignment.objects.select_related(
        'original', 'translated_story', 'assigned_to', 'reviewer', 'requested_by',
    ).order_by('-created_at')

    def get_queryset(self):
        user = self.request.user
        queryset = super().get_queryset()

        if not role_at_least(get_user_role(user), 'SUB_EDITOR'):
            queryset = queryset.filter(Q(assigned_to=user) | Q(reviewer=user))

        params = self.request.query_params

        status_filter = params.get('status')
        if status_filter:
            queryset = queryset.filter(status__in=status_filter.split(','))

        language = params.get('language')
        if language:
            queryset = queryset.filter(target_language=language)

        original = params.get('original')
        if original:
            queryset = queryset.filter(original_id=original)

        return queryset

    def _respond(self, assignment):
        return Response(TranslationAssignmentSerializer(workflow.get_assignment(assignment.pk)).data)

    @action(detail=True, methods=['post'], throttle_classes=[WorkflowActionThrottle])
    def start(self, request, pk=None):
        serializer = TranslationDraftSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = workflow.start_work(
            workflow.get_assignment(pk),
            request.user,
            title=serializer.validated_data.get('title'),
            content=serializer.validated_data.get('content'),
        )
        return self._respond(assignment)

    @action(detail=True, methods=['post'], throttle_classes=[WorkflowActionThrottle])
    def draft(self, request, pk=None):
        serializer = TranslationDraftSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = workflow.save_draft(workflow.get_assignment(pk), request.user, **serializer.validated_data)
        return self._respond(assignment)

    @action(detail=True, methods=['post'], throttle_classes=[WorkflowActionThrottle])
    def submit(self, request, pk=None):
        serializer = TranslationSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        reviewer = None
        reviewer_id = serializer.validated_data.get('reviewer_id')
        if reviewer_id:
            reviewer = User.objects.filter(pk=reviewer_id).first()
            if reviewer is None:
                raise NotFoundError(f"Reviewer {reviewer_id} not found")

        assignment = workflow.submit_for_review(
            workflow.get_assignment(pk),
            request.user,
            reviewer=reviewer,
            checklist=serializer.validated_data.get('checklist'),
        )
        return self._respond(assignment)

    @action(detail=True, methods=['post'], throttle_classes=[WorkflowActionThrottle])
    def review(self, request, pk=None):
        serializer = TranslationReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = workflow.review(
            workflow.get_assignment(pk),
            request.user,
            serializer.validated_data['outcome'],
            serializer.validated_data['notes'],
        )
        return self._respond(assignment)
