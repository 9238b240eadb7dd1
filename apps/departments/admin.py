"""
Admin configuration for departments app.
"""

from django.contrib import admin
from .models import Department


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    """Admin for Department model."""

    list_display = ('name', 'code', 'staff_count', 'created_at')
    search_fields = ('name', 'code')
    ordering = ('name',)

    readonly_fields = ('created_at', 'updated_at')
