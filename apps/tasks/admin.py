"""
Admin configuration for tasks app.
"""

from django.contrib import admin
from .models import Task, ChecklistItem, Attachment, TaskMention


class ChecklistItemInline(admin.TabularInline):
    """Inline admin for checklist on task detail."""
    model = ChecklistItem
    extra = 0
    fields = ('sort_order', 'text', 'is_done', 'completed_at')
    readonly_fields = ('completed_at',)
    ordering = ('sort_order', 'id')


class AttachmentInline(admin.TabularInline):
    model = Attachment
    extra = 0
    readonly_fields = ('uploaded_by', 'uploaded_at')


class TaskMentionInline(admin.TabularInline):
    model = TaskMention
    extra = 0
    raw_id_fields = ('user',)
    readonly_fields = ('notified_on_complete', 'created_at')


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    """Admin for Task model."""

    list_display = (
        'title', 'staff', 'task_date', 'start_time', 'end_time',
        'category', 'status', 'is_routine', 'generated_display'
    )
    list_filter = ('status', 'category', 'is_routine', 'attachment_required', 'task_date')
    search_fields = ('title', 'staff__email', 'staff__first_name', 'staff__last_name')
    ordering = ('-task_date', 'start_time')
    date_hierarchy = 'task_date'
    list_select_related = ('staff',)
    raw_id_fields = ('staff', 'created_by')

    readonly_fields = ('created_at', 'updated_at')

    fieldsets = (
        (None, {
            'fields': ('title', 'staff', 'category', 'status')
        }),
        ('Schedule', {
            'fields': ('task_date', 'start_time', 'end_time', 'is_routine', 'routine_days')
        }),
        ('Completion', {
            'fields': ('attachment_required',)
        }),
        ('Tracking', {
            'fields': ('created_by', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    inlines = [ChecklistItemInline, AttachmentInline, TaskMentionInline]

    @admin.display(boolean=True, description='Generated')
    def generated_display(self, obj):
        return obj.is_system_generated
