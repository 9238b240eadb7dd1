"""
Department model for organizational structure.

Departments are flat (no hierarchy/nesting). Routine templates are scoped
to a department and every staff member belongs to at most one.
"""

from django.db import models


class Department(models.Model):
    """
    Represents an organizational department.

    Notes:
    - Departments are flat (no parent/child relationships)
    - Code is a short identifier (e.g., "SLS", "HR")
    """

    name = models.CharField(
        max_length=100,
        unique=True,
        help_text='Full department name'
    )
    code = models.CharField(
        max_length=10,
        unique=True,
        help_text='Short identifier (e.g., SLS, HR, FIN)'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'department'
        verbose_name_plural = 'departments'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.code})"

    def save(self, *args, **kwargs):
        # Ensure code is uppercase
        if self.code:
            self.code = self.code.upper()
        super().save(*args, **kwargs)

    @property
    def staff_count(self):
        """Return the number of active staff in this department."""
        return self.users.filter(is_active=True).exclude(role='admin').count()
