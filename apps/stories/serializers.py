"""
Story serializers.
"""

from rest_framework import serializers

from apps.core.models import LANGUAGE_CHOICES
from apps.core.serializers import UserSummarySerializer
from apps.stories.state_machine import EDGES

from .models import Comment, RevisionRequest, Story


class StoryListSerializer(serializers.ModelSerializer):
    """Compact serializer for story lists."""

    author = UserSummarySerializer(read_only=True)
    days_in_stage = serializers.IntegerField(read_only=True)

    class Meta:
        model = Story
        fields = [
            'id',
            'title',
            'slug',
            'stage',
            'language',
            'category',
            'is_translation',
            'original',
            'author',
            'days_in_stage',
            'published_at',
            'updated_at',
        ]
        read_only_fields = fields


class StoryDetailSerializer(serializers.ModelSerializer):
    """Full story with assignees and audio resolved through the original."""

    author = UserSummarySerializer(read_only=True)
    assigned_reviewer = UserSummarySerializer(read_only=True)
    assigned_approver = UserSummarySerializer(read_only=True)
    audio_refs = serializers.ListField(source='effective_audio_refs', read_only=True)
    days_in_stage = serializers.IntegerField(read_only=True)

    class Meta:
        model = Story
        fields = [
            'id',
            'title',
            'slug',
            'content',
            'stage',
            'language',
            'category',
            'is_translation',
            'original',
            'author',
            'assigned_reviewer',
            'assigned_approver',
            'audio_refs',
            'follow_up_date',
            'scheduled_publish_at',
            'published_at',
            'days_in_stage',
            'author_checklist',
            'reviewer_checklist',
            'approver_checklist',
            'translation_checklist',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class StoryCreateSerializer(serializers.Serializer):
    """Input for creating a draft story."""

    title = serializers.CharField(max_length=300)
    slug = serializers.SlugField(max_length=320, required=False)
    content = serializers.CharField(required=False, allow_blank=True, default='')
    language = serializers.ChoiceField(choices=LANGUAGE_CHOICES, default='ENGLISH')
    category = serializers.SlugField(required=False, allow_blank=True, default='')
    audio_refs = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    follow_up_date = serializers.DateTimeField(required=False, allow_null=True)
    scheduled_publish_at = serializers.DateTimeField(required=False, allow_null=True)


class StoryUpdateSerializer(serializers.Serializer):
    """Input for partial story edits."""

    title = serializers.CharField(max_length=300, required=False)
    content = serializers.CharField(required=False, allow_blank=True)
    category = serializers.SlugField(required=False, allow_blank=True)
    audio_refs = serializers.ListField(child=serializers.CharField(), required=False)
    follow_up_date = serializers.DateTimeField(required=False, allow_null=True)
    scheduled_publish_at = serializers.DateTimeField(required=False, allow_null=True)


class TransitionRequestSerializer(serializers.Serializer):
    """Input for a requested stage transition."""

    transition = serializers.ChoiceField(choices=sorted(EDGES))
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    checklist = serializers.DictField(child=serializers.BooleanField(), required=False)

    def to_metadata(self):
        return {
            name: self.validated_data[name]
            for name in ('notes', 'reason')
            if self.validated_data.get(name)
        } or None


class TranslationRequestItemSerializer(serializers.Serializer):
    language = serializers.ChoiceField(choices=LANGUAGE_CHOICES)
    translator_id = serializers.IntegerField()


class TranslationRequestSerializer(serializers.Serializer):
    """Input for commissioning translations of an approved story."""

    translations = TranslationRequestItemSerializer(many=True, required=False, default=list)
    priority = serializers.ChoiceField(
        choices=['LOW', 'MEDIUM', 'HIGH', 'URGENT'],
        default='MEDIUM',
    )
    due_date = serializers.DateTimeField(required=False, allow_null=True)


class RevisionRequestSerializer(serializers.ModelSerializer):
    requested_by = UserSummarySerializer(read_only=True)
    assigned_to = UserSummarySerializer(read_only=True)
    is_resolved = serializers.BooleanField(read_only=True)

    class Meta:
        model = RevisionRequest
        fields = [
            'id',
            'edge',
            'reason',
            'requested_by',
            'requested_by_role',
            'assigned_to',
            'is_resolved',
            'resolved_at',
            'created_at',
        ]
        read_only_fields = fields


class CommentSerializer(serializers.ModelSerializer):
    """Story comment with its replies, oldest reply first."""

    author = UserSummarySerializer(read_only=True)
    replies = serializers.SerializerMethodField()

    class Meta:
        model = Comment
        fields = ['id', 'comment_type', 'content', 'author', 'parent', 'replies', 'created_at']
        read_only_fields = fields

    def get_replies(self, comment):
        if comment.parent_id is not None:
            return []
        replies = sorted(comment.replies.all(), key=lambda reply: reply.created_at)
        return CommentSerializer(replies, many=True).data


class CommentCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=5000)
    comment_type = serializers.ChoiceField(choices=Comment.TYPE_CHOICES, default='GENERAL')
    parent_id = serializers.UUIDField(required=False, allow_null=True)
