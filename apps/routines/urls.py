"""
URL configuration for routines app.
"""

from django.urls import path
from . import views

app_name = 'routines'

urlpatterns = [
    path('', views.template_list, name='template_list'),
    path('<int:pk>/', views.template_detail, name='template_detail'),
    path('generate/', views.generate, name='generate'),
]
