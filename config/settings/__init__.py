"""
Settings package for worktimeline project.

Select a module explicitly through DJANGO_SETTINGS_MODULE:
- config.settings.development (manage.py default)
- config.settings.production
- config.settings.test (pytest)
"""
