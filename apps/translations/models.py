"""
Translation models for the newsroom project.
A TranslationAssignment tracks one target-language version of an
approved story from commissioning through review.
"""

from django.conf import settings
from django.db import models

from apps.core.models import BaseModel, LANGUAGE_CHOICES


class TranslationAssignment(BaseModel):
    """
    One commissioned translation of an original story.

    The translated Story is created lazily when the translator starts
    work; its stage mirrors this assignment's status.
    """

    AUDIT_TARGET_TYPE = 'TRANSLATION'

    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('IN_PROGRESS', 'In Progress'),
        ('NEEDS_REVIEW', 'Needs Review'),
        ('APPROVED', 'Approved'),
        ('REJECTED', 'Rejected'),
    ]

    PRIORITY_CHOICES = [
        ('LOW', 'Low'),
        ('MEDIUM', 'Medium'),
        ('HIGH', 'High'),
        ('URGENT', 'Urgent'),
    ]

    # Translated story stage for each assignment status
    STAGE_FOR_STATUS = {
        'PENDING': 'DRAFT',
        'IN_PROGRESS': 'DRAFT',
        'REJECTED': 'DRAFT',
        'NEEDS_REVIEW': 'NEEDS_SUB_EDITOR_APPROVAL',
        'APPROVED': 'TRANSLATED',
    }

    original = models.ForeignKey(
        'stories.Story',
        on_delete=models.CASCADE,
        related_name='translation_assignments',
        verbose_name='Original Story'
    )

    translated_story = models.OneToOneField(
        'stories.Story',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='translation_assignment',
        verbose_name='Translated Story'
    )

    target_language = models.CharField(
        max_length=20,
        choices=LANGUAGE_CHOICES,
        verbose_name='Target Language'
    )

    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='translation_assignments',
        verbose_name='Translator'
    )

    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='requested_translations',
        verbose_name='Requested By'
    )

    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='translations_to_review',
        verbose_name='Reviewer'
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='PENDING',
        db_index=True,
        verbose_name='Status'
    )

    priority = models.CharField(
        max_length=10,
        choices=PRIORITY_CHOICES,
        default='MEDIUM',
        verbose_name='Priority'
    )

    translator_notes = models.TextField(
        blank=True,
        verbose_name='Translator Notes'
    )

    reviewer_notes = models.TextField(
        blank=True,
        verbose_name='Reviewer Notes'
    )

    rejection_reason = models.TextField(
        blank=True,
        verbose_name='Rejection Reason'
    )

    due_date = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Due Date'
    )

    started_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Started At'
    )

    submitted_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Submitted At'
    )

    reviewed_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Reviewed At'
    )

    approved_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Approved At'
    )

    rejected_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Rejected At'
    )

    class Meta:
        db_table = 'translation_assignments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['assigned_to', 'status'], name='translation_assignee_idx'),
            models.Index(fields=['reviewer', 'status'], name='translation_reviewer_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['original', 'target_language'],
                name='translation_one_per_language',
            ),
        ]
        verbose_name = 'Translation Assignment'
        verbose_name_plural = 'Translation Assignments'

    def __str__(self):
        return f"{self.original_id} → {self.target_language} ({self.status})"

    @property
    def is_approved(self):
        return self.status == 'APPROVED'

    @property
    def mirrored_stage(self):
        return self.STAGE_FOR_STATUS[self.status]
