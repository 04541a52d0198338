"""
Translation assignment serializers.
"""

from rest_framework import serializers

from apps.core.serializers import UserSummarySerializer

from .models import TranslationAssignment


class TranslationAssignmentSerializer(serializers.ModelSerializer):
    """Translation assignment with its translated story's stage."""

    assigned_to = UserSummarySerializer(read_only=True)
    reviewer = UserSummarySerializer(read_only=True)
    requested_by = UserSummarySerializer(read_only=True)
    original_title = serializers.CharField(source='original.title', read_only=True)
    translated_title = serializers.CharField(source='translated_story.title', read_only=True, default=None)
    translated_stage = serializers.CharField(source='translated_story.stage', read_only=True, default=None)

    class Meta:
        model = TranslationAssignment
        fields = [
            'id',
            'original',
            'original_title',
            'translated_story',
            'translated_title',
            'translated_stage',
            'target_language',
            'status',
            'priority',
            'assigned_to',
            'reviewer',
            'requested_by',
            'translator_notes',
            'reviewer_notes',
            'rejection_reason',
            'due_date',
            'started_at',
            'submitted_at',
            'reviewed_at',
            'approved_at',
            'rejected_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class TranslationDraftSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=300, required=False)
    content = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class TranslationSubmitSerializer(serializers.Serializer):
    reviewer_id = serializers.IntegerField(required=False, allow_null=True)
    checklist = serializers.DictField(child=serializers.BooleanField(), required=False)


class TranslationReviewSerializer(serializers.Serializer):
    outcome = serializers.ChoiceField(choices=['approve', 'reject'])
    notes = serializers.CharField(required=False, allow_blank=True, default='')
