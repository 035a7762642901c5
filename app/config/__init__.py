# =============================================================================
# Django Project Configuration Package
# =============================================================================
# This package contains the Django configuration: settings, URLs, ASGI/WSGI
# applications, and the Celery application.
#
# The Celery app is imported here so it is loaded when Django starts and
# @shared_task functions bind to it.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
