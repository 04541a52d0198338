"""
Core models for the newsroom project.
Base classes, staff profiles and the append-only audit trail.
"""

import uuid
from django.conf import settings
from django.db import models
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone


class BaseModel(models.Model):
    """
    Abstract base model with common fields for all newsroom models.
    Provides UUID primary key and timestamp tracking.
    """
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name='ID',
        help_text='Unique identifier (UUID)'
    )

    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        verbose_name='Created At',
        help_text='Timestamp when record was created'
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Updated At',
        help_text='Timestamp when record was last updated'
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        """
        Default string representation.
        Should be overridden in child classes.
        """
        return f"{self.__class__.__name__} ({self.id})"


LANGUAGE_CHOICES = [
    ('ENGLISH', 'English'),
    ('AFRIKAANS', 'Afrikaans'),
    ('XHOSA', 'Xhosa'),
]


class StaffProfile(BaseModel):
    """
    Newsroom role and translation skills for a staff member.
    Linked 1:1 with Django User model.
    """

    ROLE_CHOICES = [
        ('SUPERADMIN', 'Super Administrator'),
        ('ADMIN', 'Administrator'),
        ('EDITOR', 'Editor'),
        ('SUB_EDITOR', 'Sub-Editor'),
        ('JOURNALIST', 'Journalist'),
        ('INTERN', 'Intern'),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='staff_profile',
        verbose_name='User',
        help_text='The associated Django user account'
    )

    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default='JOURNALIST',
        db_index=True,
        verbose_name='Role',
        help_text='Newsroom role determining workflow permissions'
    )

    translation_language = models.CharField(
        max_length=20,
        choices=LANGUAGE_CHOICES,
        null=True,
        blank=True,
        db_index=True,
        verbose_name='Translation Language',
        help_text='Language this staff member translates into, if any'
    )

    class Meta:
        db_table = 'staff_profiles'
        verbose_name = 'Staff Profile'
        verbose_name_plural = 'Staff Profiles'

    def __str__(self):
        return f"{self.user.get_username()} ({self.role})"

    @property
    def is_translator(self):
        """Check if this staff member can be assigned translations."""
        return bool(self.translation_language)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_staff_profile(sender, instance, created, **kwargs):
    """Auto-create StaffProfile when a new User is created."""
    if created:
        StaffProfile.objects.get_or_create(user=instance)


# =============================================================================
# Audit Trail
# =============================================================================

class AppendOnlyError(Exception):
    """Raised when code tries to rewrite or remove an audit event."""


class AuditEventQuerySet(models.QuerySet):
    """Queryset that refuses bulk mutation of audit rows."""

    def update(self, **kwargs):
        raise AppendOnlyError("Audit events are append-only")

    def delete(self):
        raise AppendOnlyError("Audit events are append-only")


class AuditEvent(models.Model):
    """
    Immutable record of a workflow event.

    Written for every stage transition, task completion, reassignment and
    publish. Rows are inserted once and never updated or deleted.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name='ID'
    )

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_events',
        verbose_name='Actor',
        help_text='User who caused the event (empty for system events)'
    )

    action = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name='Action',
        help_text='Event name, e.g. STAGE_TRANSITION or TASK_COMPLETED'
    )

    target_type = models.CharField(
        max_length=32,
        db_index=True,
        verbose_name='Target Type'
    )

    target_id = models.UUIDField(
        db_index=True,
        verbose_name='Target ID'
    )

    from_state = models.CharField(
        max_length=40,
        blank=True,
        verbose_name='From State'
    )

    to_state = models.CharField(
        max_length=40,
        blank=True,
        verbose_name='To State'
    )

    details = models.JSONField(
        default=dict,
        blank=True,
        verbose_name='Details'
    )

    request_id = models.CharField(
        max_length=64,
        blank=True,
        verbose_name='Request ID',
        help_text='X-Request-ID of the request that produced the event'
    )

    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        db_index=True,
        verbose_name='Created At'
    )

    objects = AuditEventQuerySet.as_manager()

    class Meta:
        db_table = 'audit_events'
        verbose_name = 'Audit Event'
        verbose_name_plural = 'Audit Events'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['target_type', 'target_id', 'created_at'], name='audit_target_idx'),
        ]

    def __str__(self):
        return f"{self.action} {self.target_type}:{self.target_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AppendOnlyError("Audit events are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AppendOnlyError("Audit events are append-only")
