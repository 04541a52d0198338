"""
Story models for the newsroom project.
A Story is the content item that moves through the editorial stages;
translations are Stories too, linked back to their original.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.core.models import BaseModel, LANGUAGE_CHOICES


class Story(BaseModel):
    """
    A story or a translation of a story.

    ``updated_at`` doubles as the time the story entered its current
    stage: every transition resets it, and the SLA monitor measures dwell
    time from it.
    """

    AUDIT_TARGET_TYPE = 'STORY'

    STAGE_CHOICES = [
        ('DRAFT', 'Draft'),
        ('NEEDS_JOURNALIST_REVIEW', 'Needs Journalist Review'),
        ('NEEDS_SUB_EDITOR_APPROVAL', 'Needs Sub-Editor Approval'),
        ('APPROVED', 'Approved'),
        ('TRANSLATED', 'Translated'),
        ('PUBLISHED', 'Published'),
    ]

    title = models.CharField(
        max_length=300,
        verbose_name='Title',
        help_text='Story headline'
    )

    slug = models.SlugField(
        max_length=320,
        unique=True,
        verbose_name='Slug',
        help_text='URL-safe identifier; immutable once published'
    )

    content = models.TextField(
        blank=True,
        verbose_name='Content',
        help_text='Story body'
    )

    stage = models.CharField(
        max_length=32,
        choices=STAGE_CHOICES,
        default='DRAFT',
        db_index=True,
        verbose_name='Stage',
        help_text='Current editorial stage'
    )

    language = models.CharField(
        max_length=20,
        choices=LANGUAGE_CHOICES,
        default='ENGLISH',
        db_index=True,
        verbose_name='Language'
    )

    category = models.SlugField(
        max_length=100,
        blank=True,
        verbose_name='Category',
        help_text='Category slug; required before approval'
    )

    # Translation linkage
    is_translation = models.BooleanField(
        default=False,
        db_index=True,
        verbose_name='Is Translation'
    )

    original = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='translations',
        verbose_name='Original Story',
        help_text='Source story this item translates'
    )

    # Ownership references
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='authored_stories',
        verbose_name='Author'
    )

    assigned_reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='stories_to_review',
        verbose_name='Assigned Reviewer',
        help_text='Journalist reviewing an intern-authored story'
    )

    assigned_approver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='stories_to_approve',
        verbose_name='Assigned Approver',
        help_text='Sub-editor or above approving the story'
    )

    # Audio lives with the original; translations read it through original
    audio_refs = models.JSONField(
        default=list,
        blank=True,
        verbose_name='Audio References',
        help_text='Storage keys of audio clips attached to the story'
    )

    # Scheduling
    follow_up_date = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Follow-up Date'
    )

    scheduled_publish_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Scheduled Publish At'
    )

    published_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name='Published At'
    )

    # Stage checklists, captured as {item: checked} on the transition
    # that leaves the stage
    author_checklist = models.JSONField(default=dict, blank=True, verbose_name='Author Checklist')
    reviewer_checklist = models.JSONField(default=dict, blank=True, verbose_name='Reviewer Checklist')
    approver_checklist = models.JSONField(default=dict, blank=True, verbose_name='Approver Checklist')
    translation_checklist = models.JSONField(
        default=dict,
        blank=True,
        verbose_name='Translation Checklist',
        help_text='Translator checklist recorded when a translation is submitted for review'
    )

    class Meta:
        db_table = 'stories'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['stage', 'is_translation'], name='stories_stage_transl_idx'),
            models.Index(fields=['stage', 'updated_at'], name='stories_stage_updated_idx'),
            models.Index(fields=['assigned_reviewer', 'stage'], name='stories_reviewer_stage_idx'),
            models.Index(fields=['assigned_approver', 'stage'], name='stories_approver_stage_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(is_translation=False, original__isnull=True)
                | models.Q(is_translation=True, original__isnull=False),
                name='stories_translation_has_original',
            ),
        ]
        verbose_name = 'Story'
        verbose_name_plural = 'Stories'

    def __str__(self):
        return f"{self.title[:50]} [{self.stage}]"

    def save(self, *args, **kwargs):
        if self.pk and self.published_at is not None:
            stored_slug = (
                Story.objects.filter(pk=self.pk).values_list('slug', flat=True).first()
            )
            if stored_slug is not None and stored_slug != self.slug:
                from apps.core.exceptions import ValidationFailedError
                raise ValidationFailedError("Slug cannot change once published", field='slug')
        super().save(*args, **kwargs)

    @property
    def is_published(self):
        return self.stage == 'PUBLISHED'

    @property
    def audio_source(self):
        """The story whose audio this item plays; translations share the original's."""
        return self.original if self.is_translation else self

    @property
    def effective_audio_refs(self):
        return list(self.audio_source.audio_refs or [])

    @property
    def days_in_stage(self):
        """Whole days since the story entered its current stage."""
        if not self.updated_at:
            return None
        return (timezone.now() - self.updated_at).days


class RevisionRequest(BaseModel):
    """
    A reviewer or approver sending a story back for rework.

    Recorded with every revise transition; resolved once the story moves
    forward again.
    """

    story = models.ForeignKey(
        Story,
        on_delete=models.CASCADE,
        related_name='revision_requests',
        verbose_name='Story'
    )

    edge = models.CharField(
        max_length=32,
        verbose_name='Transition',
        help_text='Revise edge that sent the story back'
    )

    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='revisions_requested',
        verbose_name='Requested By'
    )

    requested_by_role = models.CharField(max_length=20, blank=True, verbose_name='Requester Role')

    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='revisions_assigned',
        verbose_name='Assigned To',
        help_text='Who reworks the story; empty while the revision task awaits an assignee'
    )

    reason = models.TextField(verbose_name='Reason')

    resolved_at = models.DateTimeField(null=True, blank=True, db_index=True, verbose_name='Resolved At')

    class Meta:
        db_table = 'story_revision_requests'
        ordering = ['-created_at']
        verbose_name = 'Revision Request'
        verbose_name_plural = 'Revision Requests'

    def __str__(self):
        return f"Revision of {self.story_id} ({self.edge})"

    @property
    def is_resolved(self):
        return self.resolved_at is not None


class Comment(BaseModel):
    """Editorial discussion on a story; replies hang off a top-level comment."""

    TYPE_CHOICES = [
        ('GENERAL', 'General'),
        ('REVISION_REQUEST', 'Revision Request'),
        ('APPROVAL', 'Approval'),
        ('REJECTION', 'Rejection'),
        ('EDITORIAL_NOTE', 'Editorial Note'),
    ]

    story = models.ForeignKey(
        Story,
        on_delete=models.CASCADE,
        related_name='comments',
        verbose_name='Story'
    )

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='story_comments',
        verbose_name='Author'
    )

    comment_type = models.CharField(
        max_length=20,
        choices=TYPE_CHOICES,
        default='GENERAL',
        verbose_name='Type'
    )

    content = models.TextField(verbose_name='Content')

    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='replies',
        verbose_name='Reply To'
    )

    class Meta:
        db_table = 'story_comments'
        ordering = ['-created_at']
        verbose_name = 'Comment'
        verbose_name_plural = 'Comments'

    def __str__(self):
        return f"{self.comment_type} comment on {self.story_id}"
