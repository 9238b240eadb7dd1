"""
URL configuration for worktimeline project.
"""

from django.contrib import admin
from django.urls import path, include
from django.conf import settings

urlpatterns = [
    path('admin/', admin.site.urls),

    # App URLs
    path('tasks/', include('apps.tasks.urls', namespace='tasks')),
    path('routines/', include('apps.routines.urls', namespace='routines')),
]

if settings.DEBUG and 'debug_toolbar' in settings.INSTALLED_APPS:
    import debug_toolbar
    urlpatterns = [
        path('__debug__/', include(debug_toolbar.urls)),
    ] + urlpatterns

# Admin site customization
admin.site.site_header = 'Work Timeline Administration'
admin.site.site_title = 'Work Timeline Admin'
admin.site.index_title = 'Welcome to Work Timeline Admin'
