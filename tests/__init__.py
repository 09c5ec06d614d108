"""
Test suite for the task service.

This package contains:
- unit/: rule engine, store, schemas and helpers without HTTP
- integration/: API tests through the Flask test client, including
  store-outage resilience
- contracts/: responses validated against contracts/tasks_openapi.yaml
"""
