"""
Story API views.

GET    /api/stories/                       - List stories
POST   /api/stories/                       - Create a draft (opens STORY_CREATE)
GET    /api/stories/{id}/                  - Story detail
PATCH  /api/stories/{id}/                  - Edit an unpublished story
DELETE /api/stories/{id}/                  - Delete (guarded)
POST   /api/stories/{id}/transition/       - Request a named stage transition
GET    /api/stories/{id}/translations/     - Translation assignments
POST   /api/stories/{id}/translations/     - Commission translations
POST   /api/stories/{id}/publish/          - Publish the story group
GET    /api/stories/{id}/group-status/     - Group publish readiness
GET    /api/stories/{id}/history/          - Audit trail
GET    /api/stories/{id}/revisions/        - Revision requests, newest first
GET    /api/stories/{id}/comments/         - Editorial comments (?type= filter)
POST   /api/stories/{id}/comments/         - Add a comment or reply
"""

from django.db.models import Q
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.audit import history_for
from apps.core.permissions import IsStaffMember
from apps.core.serializers import AuditEventSerializer
from apps.core.throttling import WorkflowActionThrottle
from apps.tasks.serializers import TaskSummarySerializer
from apps.translations.serializers import TranslationAssignmentSerializer
from apps.translations.workflow import request_translations

from .models import Story
from .publishing import group_status, publish_group
from .revisions import revision_history
from .serializers import (
    CommentCreateSerializer,
    CommentSerializer,
    RevisionRequestSerializer,
    StoryCreateSerializer,
    StoryDetailSerializer,
    StoryListSerializer,
    StoryUpdateSerializer,
    TransitionRequestSerializer,
    TranslationRequestSerializer,
)
from .services import (
    add_comment,
    create_story,
    delete_story,
    list_comments,
    request_transition,
    update_story,
)


class StoryViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Stories and their editorial workflow actions."""

    permission_classes = [IsStaffMember]
    queryset = Story.objects.select_related(
        'author', 'original', 'assigned_reviewer', 'assigned_approver',
    ).order_by('-updated_at')

    def get_serializer_class(self):
        if self.action == 'list':
            return StoryListSerializer
        return StoryDetailSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        stage = params.get('stage')
        if stage:
            queryset = queryset.filter(stage=stage)

        language = params.get('language')
        if language:
            queryset = queryset.filter(language=language)

        is_translation = params.get('is_translation')
        if is_translation is not None:
            queryset = queryset.filter(is_translation=is_translation.lower() in ('true', '1', 'yes'))

        original = params.get('original')
        if original:
            queryset = queryset.filter(original_id=original)

        mine = params.get('mine')
        if mine and mine.lower() in ('true', '1', 'yes'):
            user = self.request.user
            queryset = queryset.filter(
                Q(author=user) | Q(assigned_reviewer=user) | Q(assigned_approver=user)
            )

        search = params.get('search')
        if search:
            queryset = queryset.filter(title__icontains=search)

        return queryset

    def create(self, request):
        serializer = StoryCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        story = create_story(request.user, **serializer.validated_data)
        return Response(StoryDetailSerializer(story).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        story = self.get_object()
        serializer = StoryUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        story = update_story(story, request.user, **serializer.validated_data)
        return Response(StoryDetailSerializer(story).data)

    def destroy(self, request, pk=None):
        story = self.get_object()
        delete_story(story, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], throttle_classes=[WorkflowActionThrottle])
    def transition(self, request, pk=None):
        """Apply a named transition; the next task is opened for the new stage."""
        serializer = TransitionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        story, next_task = request_transition(
            pk,
            serializer.validated_data['transition'],
            request.user,
            metadata=serializer.to_metadata(),
            checklist=serializer.validated_data.get('checklist'),
        )
        return Response({
            'story': StoryDetailSerializer(story).data,
            'next_task': TaskSummarySerializer(next_task).data if next_task else None,
        })

    @action(detail=True, methods=['get', 'post'], throttle_classes=[WorkflowActionThrottle])
    def translations(self, request, pk=None):
        story = self.get_object()

        if request.method == 'GET':
            assignments = story.translation_assignments.select_related(
                'translated_story', 'assigned_to', 'reviewer',
            ).order_by('target_language')
            return Response(TranslationAssignmentSerializer(assignments, many=True).data)

        serializer = TranslationRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignments = request_translations(
            story,
            request.user,
            serializer.validated_data['translations'],
            priority=serializer.validated_data['priority'],
            due_date=serializer.validated_data.get('due_date'),
        )
        return Response(
            {
                'story': StoryDetailSerializer(story).data,
                'assignments': TranslationAssignmentSerializer(assignments, many=True).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['post'], throttle_classes=[WorkflowActionThrottle])
    def publish(self, request, pk=None):
        """Publish the original together with every approved translation."""
        story = publish_group(self.get_object(), request.user)
        return Response(group_status(story))

    @action(detail=True, methods=['get'], url_path='group-status')
    def publish_status(self, request, pk=None):
        return Response(group_status(self.get_object()))

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        events = history_for(self.get_object()).select_related('actor')
        return Response(AuditEventSerializer(events, many=True).data)

    @action(detail=True, methods=['get'])
    def revisions(self, request, pk=None):
        story = self.get_object()
        return Response(RevisionRequestSerializer(revision_history(story), many=True).data)

    @action(detail=True, methods=['get', 'post'], throttle_classes=[WorkflowActionThrottle])
    def comments(self, request, pk=None):
        story = self.get_object()

        if request.method == 'GET':
            comments = list_comments(story, request.user, request.query_params.get('type'))
            return Response(CommentSerializer(comments, many=True).data)

        serializer = CommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = add_comment(
            story,
            request.user,
            serializer.validated_data['content'],
            comment_type=serializer.validated_data['comment_type'],
            parent_id=serializer.validated_data.get('parent_id'),
        )
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)
