"""
Task serializers.
"""

from rest_framework import serializers

from apps.core.serializers import UserSummarySerializer
from apps.stories.models import Comment
from apps.stories.serializers import TranslationRequestItemSerializer

from .models import Task
from .orchestrator import allowed_outcomes


class TaskSummarySerializer(serializers.ModelSerializer):
    """Compact task reference returned alongside workflow actions."""

    assigned_to = UserSummarySerializer(read_only=True)

    class Meta:
        model = Task
        fields = [
            'id',
            'task_type',
            'status',
            'title',
            'assigned_to',
            'due_date',
        ]
        read_only_fields = fields


class TaskSerializer(serializers.ModelSerializer):
    """Full task for the inbox."""

    assigned_to = UserSummarySerializer(read_only=True)
    created_by = UserSummarySerializer(read_only=True)
    allowed_outcomes = serializers.SerializerMethodField()

    class Meta:
        model = Task
        fields = [
            'id',
            'task_type',
            'status',
            'priority',
            'title',
            'description',
            'assigned_to',
            'created_by',
            'content_kind',
            'content_id',
            'source_language',
            'target_language',
            'due_date',
            'started_at',
            'completed_at',
            'metadata',
            'allowed_outcomes',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_allowed_outcomes(self, obj):
        if obj.is_terminal:
            return []
        return list(allowed_outcomes(obj))


class TaskCompleteSerializer(serializers.Serializer):
    """
    Input for completing a task.

    ``translations`` is read when completing a commissioning
    STORY_TRANSLATE task, ``reviewer_id`` when submitting a translation.
    ``reason`` (or ``notes``) explains a revise outcome; ``checklist``
    records the stage checklist of the step being finished.
    """

    outcome = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    reason = serializers.CharField(required=False, allow_blank=True)
    reviewer_id = serializers.IntegerField(required=False, allow_null=True)
    translations = TranslationRequestItemSerializer(many=True, required=False)
    checklist = serializers.DictField(child=serializers.BooleanField(), required=False)

    def to_metadata(self):
        return {
            name: value
            for name, value in self.validated_data.items()
            if value not in (None, '')
        }


class TaskReassignSerializer(serializers.Serializer):
    assignee_id = serializers.IntegerField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class TaskCommentSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=1000)
    comment_type = serializers.ChoiceField(choices=Comment.TYPE_CHOICES, default='GENERAL')
