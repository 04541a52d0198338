"""
Task models for the newsroom project.
A Task is one assignable unit of editorial work, tied to the content
item it concerns through a typed content reference.
"""

import uuid
from dataclasses import dataclass
from enum import Enum

from django.conf import settings
from django.db import models

from apps.core.models import BaseModel, LANGUAGE_CHOICES


class ContentKind(str, Enum):
    """Kinds of content a task can point at."""
    STORY = 'STORY'
    TRANSLATION = 'TRANSLATION'
    BULLETIN = 'BULLETIN'
    SHOW = 'SHOW'


@dataclass(frozen=True)
class ContentRef:
    """
    Typed reference to the content a task concerns.

    STORY refs carry a Story id, TRANSLATION refs a TranslationAssignment
    id. BULLETIN and SHOW refs are opaque ids owned by other systems.
    """
    kind: ContentKind
    id: uuid.UUID

    @classmethod
    def for_story(cls, story):
        return cls(ContentKind.STORY, story.pk)

    @classmethod
    def for_assignment(cls, assignment):
        return cls(ContentKind.TRANSLATION, assignment.pk)

    def resolve(self):
        """Load the referenced object, or None for opaque kinds."""
        if self.kind is ContentKind.STORY:
            from apps.stories.models import Story
            return Story.objects.filter(pk=self.id).first()
        if self.kind is ContentKind.TRANSLATION:
            from apps.translations.models import TranslationAssignment
            return TranslationAssignment.objects.filter(pk=self.id).first()
        return None


class Task(BaseModel):
    """
    A discrete, assignable unit of work for one workflow step.
    """

    AUDIT_TARGET_TYPE = 'TASK'

    TYPE_CHOICES = [
        ('STORY_CREATE', 'Create Story'),
        ('STORY_REVIEW', 'Review Story'),
        ('STORY_REVISION_TO_AUTHOR', 'Revise Story (Author)'),
        ('STORY_APPROVAL', 'Approve Story'),
        ('STORY_REVISION_TO_JOURNALIST', 'Revise Story (Journalist)'),
        ('STORY_TRANSLATE', 'Translate Story'),
        ('STORY_TRANSLATION_REVIEW', 'Review Translation'),
        ('STORY_PUBLISH', 'Publish Story'),
        ('STORY_FOLLOW_UP', 'Follow Up Story'),
        ('BULLETIN_CREATE', 'Create Bulletin'),
        ('BULLETIN_REVIEW', 'Review Bulletin'),
        ('BULLETIN_PUBLISH', 'Publish Bulletin'),
        ('SHOW_CREATE', 'Create Show'),
        ('SHOW_REVIEW', 'Review Show'),
        ('SHOW_PUBLISH', 'Publish Show'),
    ]

    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('IN_PROGRESS', 'In Progress'),
        ('COMPLETED', 'Completed'),
        ('CANCELLED', 'Cancelled'),
        ('BLOCKED', 'Blocked'),
        ('PENDING_ASSIGNMENT', 'Pending Assignment'),
    ]

    PRIORITY_CHOICES = [
        ('LOW', 'Low'),
        ('MEDIUM', 'Medium'),
        ('HIGH', 'High'),
        ('URGENT', 'Urgent'),
    ]

    CONTENT_KIND_CHOICES = [(kind.value, kind.value.title()) for kind in ContentKind]

    TERMINAL_STATUSES = ('COMPLETED', 'CANCELLED')
    OPEN_STATUSES = ('PENDING', 'IN_PROGRESS', 'BLOCKED', 'PENDING_ASSIGNMENT')

    task_type = models.CharField(
        max_length=40,
        choices=TYPE_CHOICES,
        db_index=True,
        verbose_name='Type'
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

    title = models.CharField(
        max_length=300,
        verbose_name='Title'
    )

    description = models.TextField(
        blank=True,
        verbose_name='Description'
    )

    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_tasks',
        verbose_name='Assigned To'
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_tasks',
        verbose_name='Created By'
    )

    # Typed content reference
    content_kind = models.CharField(
        max_length=20,
        choices=CONTENT_KIND_CHOICES,
        verbose_name='Content Kind'
    )

    content_id = models.UUIDField(
        db_index=True,
        verbose_name='Content ID'
    )

    source_language = models.CharField(
        max_length=20,
        choices=LANGUAGE_CHOICES,
        blank=True,
        verbose_name='Source Language'
    )

    target_language = models.CharField(
        max_length=20,
        choices=LANGUAGE_CHOICES,
        blank=True,
        verbose_name='Target Language'
    )

    due_date = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name='Due Date'
    )

    started_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Started At'
    )

    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Completed At'
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        verbose_name='Metadata',
        help_text='Outcome, notes and reassignment history'
    )

    class Meta:
        db_table = 'tasks'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['assigned_to', 'status'], name='tasks_assignee_status_idx'),
            models.Index(fields=['content_kind', 'content_id'], name='tasks_content_ref_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['content_kind', 'content_id', 'task_type'],
                condition=models.Q(status__in=['PENDING', 'IN_PROGRESS', 'BLOCKED', 'PENDING_ASSIGNMENT']),
                name='tasks_one_open_per_step',
            ),
        ]
        verbose_name = 'Task'
        verbose_name_plural = 'Tasks'

    def __str__(self):
        return f"{self.task_type} ({self.status})"

    @property
    def content_ref(self) -> ContentRef:
        return ContentRef(ContentKind(self.content_kind), self.content_id)

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES
