from django.contrib import admin

from .models import AuditEvent, StaffProfile


@admin.register(StaffProfile)
class StaffProfileAdmin(admin.ModelAdmin):
    """Admin configuration for StaffProfile model."""

    list_display = ['user', 'role', 'translation_language', 'created_at']
    list_filter = ['role', 'translation_language']
    search_fields = ['user__username', 'user__email', 'user__first_name', 'user__last_name']
    raw_id_fields = ['user']


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    """Read-only view of the audit trail."""

    list_display = ['created_at', 'action', 'target_type', 'target_id', 'from_state', 'to_state', 'actor']
    list_filter = ['action', 'target_type']
    search_fields = ['target_id', 'request_id', 'actor__username']
    date_hierarchy = 'created_at'
    readonly_fields = [
        'id', 'actor', 'action', 'target_type', 'target_id', 'from_state',
        'to_state', 'details', 'request_id', 'created_at',
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
