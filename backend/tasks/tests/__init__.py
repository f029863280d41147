# tasks/tests/__init__.py
"""
Task App Test Suite
===================

Modules:
--------
- test_scheduling: Unit tests for the fallback ordering and AI schedule reconciliation
- test_ai_client: Prompt building and AI reply parsing
- test_services: Schedule orchestration and the suggestion gate
- test_views: HTTP API for tasks, schedules, suggestions and premium

Running Tests:
--------------
    python manage.py test tasks
    python manage.py test tasks.tests.test_scheduling -v 2
"""
