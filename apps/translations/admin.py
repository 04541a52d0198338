from django.contrib import admin

from .models import TranslationAssignment


@admin.register(TranslationAssignment)
class TranslationAssignmentAdmin(admin.ModelAdmin):
    """Admin configuration for TranslationAssignment model."""

    list_display = [
        'original',
        'target_language',
        'status',
        'assigned_to',
        'reviewer',
        'submitted_at',
        'reviewed_at',
    ]
    list_filter = ['status', 'target_language']
    search_fields = ['original__title', 'assigned_to__username']
    raw_id_fields = ['original', 'translated_story', 'assigned_to', 'reviewer', 'requested_by']
    readonly_fields = [
        'status', 'started_at', 'submitted_at', 'reviewed_at', 'approved_at', 'rejected_at',
    ]
