"""
URL configuration for tasks app.
"""

from django.urls import path
from . import views

app_name = 'tasks'

urlpatterns = [
    # Timeline & list
    path('', views.task_list, name='task_list'),
    path('timeline/', views.timeline, name='timeline'),

    # Task CRUD
    path('create/', views.task_create, name='task_create'),

    # Status changes
    path('<int:pk>/status/', views.task_status_change, name='task_status_change'),
    path('checklist/<int:item_id>/toggle/', views.checklist_toggle, name='checklist_toggle'),

    # Attachments
    path('<int:pk>/attachments/', views.attachment_add, name='attachment_add'),
    path('attachments/<int:attachment_id>/delete/', views.attachment_delete, name='attachment_delete'),
]
