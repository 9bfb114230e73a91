"""
Root pytest configuration for the Django project.

pytest-django loads settings from pyproject.toml; this module only makes
sure a settings module is selected when tests are run from the repo root.
App-specific fixtures are defined in each app's tests/conftest.py.
"""

import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
