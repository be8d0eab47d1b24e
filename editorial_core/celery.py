"""
Celery application for editorial_core.

Periodic tasks are declared in apps.deadlines.celery_schedule and loaded
through the CELERY_ namespace of the Django settings.
"""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'editorial_core.settings')

app = Celery('editorial_core')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
