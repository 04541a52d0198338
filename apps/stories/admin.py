from django.contrib import admin

from .models import Comment, RevisionRequest, Story


@admin.register(Story)
class StoryAdmin(admin.ModelAdmin):
    """Admin configuration for Story model."""

    list_display = [
        'title',
        'stage',
        'language',
        'category',
        'is_translation',
        'author',
        'assigned_reviewer',
        'assigned_approver',
        'updated_at',
        'published_at',
    ]
    list_filter = ['stage', 'language', 'is_translation']
    search_fields = ['title', 'slug', 'author__username']
    raw_id_fields = ['original', 'author', 'assigned_reviewer', 'assigned_approver']
    # Stages only move through the workflow
    readonly_fields = ['stage', 'published_at', 'created_at', 'updated_at']


@admin.register(RevisionRequest)
class RevisionRequestAdmin(admin.ModelAdmin):
    list_display = ['story', 'edge', 'requested_by', 'assigned_to', 'created_at', 'resolved_at']
    list_filter = ['edge', 'requested_by_role']
    search_fields = ['story__title', 'reason']
    raw_id_fields = ['story', 'requested_by', 'assigned_to']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ['story', 'comment_type', 'author', 'parent', 'created_at']
    list_filter = ['comment_type']
    search_fields = ['story__title', 'content', 'author__username']
    raw_id_fields = ['story', 'author', 'parent']
