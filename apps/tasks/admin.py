from django.contrib import admin

from .models import Task


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    """Admin configuration for Task model."""

    list_display = [
        'title',
        'task_type',
        'status',
        'priority',
        'assigned_to',
        'content_kind',
        'due_date',
        'created_at',
    ]
    list_filter = ['task_type', 'status', 'priority', 'content_kind']
    search_fields = ['title', 'content_id', 'assigned_to__username']
    raw_id_fields = ['assigned_to', 'created_by']
    readonly_fields = ['started_at', 'completed_at', 'created_at', 'updated_at']
