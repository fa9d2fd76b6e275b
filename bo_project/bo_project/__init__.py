# Celery instance is defined in bo_project/celery.py
# Importing it here makes it the default app for @shared_task
from .celery import celery_app

__all__ = ("celery_app",)

""" Run workers with "celery -A bo_project worker -l info"
    and the scheduler with "celery -A bo_project beat -l info". """
