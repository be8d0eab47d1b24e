"""
URL configuration for deadlines app.
"""
from django.urls import path
from apps.deadlines.views import TimeLimitView

app_name = 'deadlines'

urlpatterns = [
    path('time-limits/', TimeLimitView.as_view(), name='time-limits'),
]
