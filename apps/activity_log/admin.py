"""
Admin configuration for activity_log app.
"""

from django.contrib import admin
from .models import TaskActivity


@admin.register(TaskActivity)
class TaskActivityAdmin(admin.ModelAdmin):
    """Read-only audit trail."""

    list_display = (
        'task', 'actor_display', 'action_type', 'description_preview',
        'field_name', 'created_at'
    )
    list_filter = ('action_type', 'created_at')
    search_fields = (
        'task__title', 'description',
        'user__email', 'user__first_name', 'user__last_name'
    )
    ordering = ('-created_at',)
    date_hierarchy = 'created_at'

    readonly_fields = (
        'task', 'user', 'action_type', 'description',
        'field_name', 'old_value', 'new_value', 'created_at'
    )

    @admin.display(description='Actor')
    def actor_display(self, obj):
        return obj.user or 'System'

    @admin.display(description='Description')
    def description_preview(self, obj):
        return obj.description[:80] + '...' if len(obj.description) > 80 else obj.description

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('task', 'user')
