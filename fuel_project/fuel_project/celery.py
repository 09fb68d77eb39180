""" Workers are started with "celery -A fuel_project worker -l info"
    -A fuel_project imports fuel_project/__init__.py,
    which exposes celery_app. """
from __future__ import annotations
import os
from celery import Celery

# ensure Django settings are set for Celery
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "fuel_project.settings")

celery_app = Celery("fuel_project")

# read config from Django settings, using CELERY_ prefix
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

# autoload tasks.py from installed apps (fuel_ledger.tasks)
celery_app.autodiscover_tasks()
