"""
Project-wide pytest configuration.

Settings overrides for the test run and automatic unit/integration
markers. Fixtures live in each app's conftest.py.
"""

import pytest

# Test modules that only touch pure functions or a single model
UNIT_TEST_FILES = {
    "test_exceptions.py",
    "test_fees.py",
    "test_helpers.py",
    "test_resolver.py",
    "test_stripe_adapter.py",
    "test_transitions.py",
}


def pytest_configure():
    from django.conf import settings

    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

    # No Redis or TLS terminator in tests
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}
    }
    settings.SESSION_ENGINE = "django.contrib.sessions.backends.db"
    settings.SECURE_SSL_REDIRECT = False

    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

    settings.STRIPE_SECRET_KEY = "sk_test_settlement"
    settings.STRIPE_WEBHOOK_SECRET = "whsec_test_settlement"


def pytest_collection_modifyitems(items):
    """Mark every test unit or integration by file name unless already marked."""
    for item in items:
        if {m.name for m in item.iter_markers()} & {"unit", "integration", "e2e"}:
            continue
        if item.path.name in UNIT_TEST_FILES:
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)
