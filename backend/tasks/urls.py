# tasks/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('tasks/', views.task_list, name='task_list'),
    # Must precede the <task_id> route
    path('tasks/suggestions/', views.generate_suggestion, name='generate_suggestion'),
    path('tasks/<str:task_id>/', views.task_detail, name='task_detail'),
    path('schedule/generate/', views.generate_schedule, name='generate_schedule'),
    path('premium/activate/', views.activate_premium, name='activate_premium'),
    path('health/', views.health_check, name='health_check'),
]
