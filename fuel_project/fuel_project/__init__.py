# Celery instance is defined in fuel_project/celery.py
# Importing it here makes sure the app is loaded when Django starts,
# so @shared_task functions bind to it
from .celery import celery_app

# 'from fuel_project import *', only exports celery_app
__all__ = ("celery_app",)
