# core/tests/test_settings.py
import importlib
import os
from unittest import mock

from django.conf import settings
from django.test import SimpleTestCase


class SettingsDispatchTest(SimpleTestCase):
    def _load(self, env):
        with mock.patch.dict(os.environ, env, clear=True):
            return importlib.reload(importlib.import_module('settings'))

    def test_test_settings_module_selects_test_env(self):
        project_settings = self._load({'DJANGO_SETTINGS_MODULE': 'settings.test'})
        self.assertEqual(project_settings.DJANGO_ENV, 'test')

    def test_explicit_env_wins(self):
        project_settings = self._load({'DJANGO_SETTINGS_MODULE': 'settings.test', 'DJANGO_ENV': 'TEST'})
        self.assertEqual(project_settings.DJANGO_ENV, 'test')

    def test_no_file_logging_under_test(self):
        handlers = settings.LOGGING['handlers'].values()
        self.assertFalse(any('filename' in handler for handler in handlers))
