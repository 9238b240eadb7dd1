"""
Admin configuration for routines app.
"""

from django.contrib import admin
from .models import RoutineTemplate


@admin.register(RoutineTemplate)
class RoutineTemplateAdmin(admin.ModelAdmin):
    list_display = (
        'title', 'department', 'days_display', 'default_start_time',
        'duration_hours', 'start_date', 'is_active'
    )
    list_filter = ('is_active', 'department')
    search_fields = ('title', 'department__name')
    ordering = ('department__name', 'title')
    list_select_related = ('department',)

    fieldsets = (
        (None, {
            'fields': ('department', 'title', 'is_active')
        }),
        ('Schedule', {
            'fields': ('routine_days', 'start_date', 'default_start_time', 'duration_hours')
        }),
        ('Checklist', {
            'fields': ('checklist_template',)
        }),
    )

    @admin.display(description='Days')
    def days_display(self, obj):
        return obj.days_display
