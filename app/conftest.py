"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides project-wide fixtures.
App-specific fixtures are defined in each app's tests/conftest.py.
"""

import os

import django
import pytest

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
# Tasks queued by on_commit callbacks run inline instead of hitting a broker
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "True")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # No Redis in the test environment
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}
    }
    settings.CHANNEL_LAYERS = {
        "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}
    }

    from config.celery import app as celery_app

    settings.CELERY_TASK_ALWAYS_EAGER = True
    celery_app.conf.task_always_eager = True

    settings.PAYMENT_WEBHOOK_SECRET = "test-webhook-secret"
    settings.PAYMENT_SWEEPER_TOKEN = ""
    settings.PAYMENT_WEBHOOK_STRICT_VALIDATION = False
    settings.PAYMENT_WEBHOOK_IGNORE_TEST_EVENTS = True
    settings.PAYMENT_NOTIFIER_BACKEND = "payments.notifiers.ChannelLayerNotifier"


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_concurrency.py → e2e (real threads against PostgreSQL)
    - test_webhooks.py, test_sweeper.py, test_tasks.py, etc. → integration
    - test_states.py, test_events.py, test_notifiers.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_concurrency.py"]

    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_webhooks.py",
        "test_ingestor.py",
        "test_transitions.py",
        "test_sweeper.py",
        "test_records.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_serializers.py",
        "test_states.py",
        "test_events.py",
        "test_notifiers.py",
        "test_exceptions.py",
    ]

    for item in items:
        # Skip if test already has unit/integration/e2e marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)
