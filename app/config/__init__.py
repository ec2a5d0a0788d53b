# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, URLs, WSGI application and Celery configuration.
#
# The Celery app is imported here so that shared_task binds to it and
# autodiscovery runs when Django starts.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
